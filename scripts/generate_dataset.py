"""
Gold Layer Sample Dataset Generator
Generates dim_customers, dim_products and fact_sales CSV files using
vectorized operations, including a few order lines without an order date
and lines referencing keys missing from the dimensions.
"""

import argparse
from datetime import date, timedelta
from pathlib import Path

import numpy as np
import polars as pl
from faker import Faker

fake = Faker()
np.random.seed(42)
Faker.seed(42)

DEFAULT_OUTPUT_DIR = Path(__file__).parent.parent / "data" / "gold"

CATEGORIES = {
    "Bikes": ["Mountain Bikes", "Road Bikes", "Touring Bikes"],
    "Components": ["Frames", "Wheels", "Handlebars"],
    "Clothing": ["Jerseys", "Shorts", "Gloves"],
    "Accessories": ["Helmets", "Bottles and Cages", "Tires and Tubes"],
}


# ==========================================
# CUSTOMERS
# ==========================================
def generate_customers(n: int) -> pl.DataFrame:
    print(f"📊 Generating {n:,} customers...")

    today = date.today()
    ages_days = np.random.randint(16 * 365, 85 * 365, n)

    df = pl.DataFrame({
        "customer_key": np.arange(1, n + 1),
        "customer_id": np.arange(11000, 11000 + n),
        "customer_number": [f"AW{i:08d}" for i in range(11000, 11000 + n)],
        "first_name": [fake.first_name() for _ in range(n)],
        "last_name": [fake.last_name() for _ in range(n)],
        "country": np.random.choice(["United States", "Australia", "United Kingdom", "Germany", "France", "Canada"], n),
        "gender": np.random.choice(["Male", "Female"], n),
        "birthdate": [today - timedelta(days=int(d)) for d in ages_days],
    })
    return df


# ==========================================
# PRODUCTS
# ==========================================
def generate_products(n: int) -> pl.DataFrame:
    print(f"📊 Generating {n:,} products...")

    categories = np.random.choice(list(CATEGORIES), n)
    subcategories = [str(np.random.choice(CATEGORIES[c])) for c in categories]

    df = pl.DataFrame({
        "product_key": np.arange(1, n + 1),
        "product_number": [f"PR-{i:05d}" for i in range(n)],
        "product_name": [f"{fake.word().title()} {s[:-1]}" for s in subcategories],
        "category": categories,
        "subcategory": subcategories,
        "cost": np.random.randint(2, 2200, n),
    })
    return df


# ==========================================
# SALES (order lines) - VECTORIZED!
# ==========================================
def generate_sales(n_orders: int, n_customers: int, n_products: int) -> pl.DataFrame:
    print(f"📊 Generating sales lines for {n_orders:,} orders (vectorized)...")

    base_date = date.today() - timedelta(days=4 * 365)
    order_days = np.random.randint(0, 4 * 365, n_orders)
    lines_per_order = np.random.randint(1, 4, n_orders)

    order_index = np.repeat(np.arange(n_orders), lines_per_order)
    n_lines = len(order_index)

    # 1% of lines point at keys that no dimension row has
    customer_keys = np.random.randint(1, n_customers + 1, n_orders)[order_index]
    product_keys = np.random.randint(1, n_products + 1, n_lines)
    orphans = np.random.rand(n_lines) < 0.01
    product_keys = np.where(orphans, n_products + 1000, product_keys)

    quantity = np.random.choice([1, 1, 1, 2, 3], n_lines)
    price = np.random.randint(2, 3500, n_lines)

    order_dates = [base_date + timedelta(days=int(order_days[i])) for i in order_index]
    missing_date = np.random.rand(n_lines) < 0.005

    df = pl.DataFrame({
        "order_number": [f"SO{43697 + i}" for i in order_index],
        "product_key": product_keys,
        "customer_key": customer_keys,
        "order_date": [None if missing else d for d, missing in zip(order_dates, missing_date)],
        "sales_amount": price * quantity,
        "quantity": quantity,
        "price": price,
    })
    return df


# ==========================================
# MAIN
# ==========================================
def main():
    parser = argparse.ArgumentParser(description="Generate a sample gold-layer dataset")
    parser.add_argument("--output", default=str(DEFAULT_OUTPUT_DIR), help="Output directory")
    parser.add_argument("--customers", type=int, default=5000)
    parser.add_argument("--products", type=int, default=300)
    parser.add_argument("--orders", type=int, default=25000)
    args = parser.parse_args()

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("🛒 Gold Layer Dataset Generator")
    print("=" * 60 + "\n")

    tables = {
        "dim_customers": generate_customers(args.customers),
        "dim_products": generate_products(args.products),
        "fact_sales": generate_sales(args.orders, args.customers, args.products),
    }

    for name, df in tables.items():
        df.write_csv(output_dir / f"{name}.csv")
        print(f"   ✅ {name}.csv: {len(df):,} rows")

    print("\n" + "=" * 60)
    print("✅ Dataset Generation Complete!")
    print("=" * 60)
    print(f"\n📁 Output: {output_dir}\n")


if __name__ == "__main__":
    main()
