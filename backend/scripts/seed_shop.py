#!/usr/bin/env python
"""Idempotent seed script for staff accounts and demo warranty data.

Usage:
    python backend/scripts/seed_shop.py                # seed normally
    python backend/scripts/seed_shop.py --dry-run      # run logic then rollback (no DB changes)
    python backend/scripts/seed_shop.py --no-demo      # staff accounts only
    python backend/scripts/seed_shop.py --show-users   # print staff after seeding
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from repairdesk import create_app, get_db  # type: ignore
from repairdesk.constants.permissions import ROLE_ADMIN, ROLE_CASHIER, ROLE_TECHNICIAN
from repairdesk.models.base import Base
from repairdesk.models.user import User
from repairdesk.models.customer import Customer
from repairdesk.models.product import Product, SaleSerial
from repairdesk.models import repair, notification, audit  # noqa: F401  (register tables for create_all)

STAFF = [
    # (name, username, email, role)
    ('Shop Admin', 'admin', os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com'), ROLE_ADMIN),
    ('Front Desk', 'cashier', 'cashier@example.com', ROLE_CASHIER),
    ('Kasun Perera', 'kasun', 'kasun@example.com', ROLE_TECHNICIAN),
    ('Nimali Silva', 'nimali', 'nimali@example.com', ROLE_TECHNICIAN),
]

DEMO_PRODUCTS = [
    # (name, category, warranty months, units in stock, retail price)
    ('HP ProBook 450 G9', 'Laptop', 12, 4, '245000.00'),
    ('Samsung 24" Monitor', 'Monitor', 36, 6, '48500.00'),
    ('Kingston 1TB NVMe', 'Storage', 3, 10, '21900.00'),
]

DEMO_SALES = [
    # (serial, product name, customer name, phone, email, days since sale)
    ('HPB450-0001', 'HP ProBook 450 G9', 'Saman Kumara', '0771234567', 'saman@example.com', 40),
    ('SMG24-0042', 'Samsung 24" Monitor', 'Dilani Fernando', '+94712345678', None, 400),
    ('KNG1T-7781', 'Kingston 1TB NVMe', 'Saman Kumara', '0771234567', 'saman@example.com', 100),
]


def ensure_staff(session):
    password = os.getenv('SEED_STAFF_PASSWORD', 'ChangeMe123!')
    created = 0
    for name, username, email, role in STAFF:
        existing = session.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if existing:
            continue
        user = User(name=name, username=username, email=email, role=role, is_active=True, password_hash='')
        user.set_password(password)
        session.add(user)
        created += 1
        print(f"[INFO] Created {role} {username} with temporary password.")
    session.flush()
    return created


def ensure_demo_sales(session):
    products = {p.name: p for p in session.execute(select(Product)).scalars().all()}
    for name, category, months, stock, price in DEMO_PRODUCTS:
        if name not in products:
            products[name] = Product(name=name, category=category, warranty_months=months,
                                     quantity=stock, retail_price=Decimal(price))
            session.add(products[name])
    session.flush()
    created = 0
    today = date.today()
    for serial, product_name, cust_name, phone, email, age_days in DEMO_SALES:
        if session.execute(select(SaleSerial).where(SaleSerial.serial_number == serial)).scalar_one_or_none():
            continue
        customer = session.execute(select(Customer).where(Customer.phone == phone)).scalar_one_or_none()
        if not customer:
            customer = Customer(name=cust_name, phone=phone, email=email, date_created=today - timedelta(days=age_days))
            session.add(customer)
            session.flush()
        session.add(SaleSerial(
            serial_number=serial,
            product_id=products[product_name].id,
            customer_id=customer.id,
            sale_date=today - timedelta(days=age_days),
        ))
        created += 1
    return created


def print_staff(session):
    rows = session.execute(select(User).order_by(User.role, User.username)).scalars().all()
    if not rows:
        print("[INFO] No staff present.")
        return
    name_w = max(len(u.username) for u in rows)
    print(f"{'Username'.ljust(name_w)} | Role       | Active")
    print('-' * (name_w + 24))
    for u in rows:
        print(f"{u.username.ljust(name_w)} | {u.role.ljust(10)} | {'yes' if u.is_active else 'no'}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed staff accounts and demo warranty data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_shop.py\n  dry run: seed_shop.py --dry-run\n  staff only: seed_shop.py --no-demo\n""")
    )
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--no-demo', action='store_true', help='Skip demo products, customers and sold serials')
    p.add_argument('--show-users', action='store_true', help='Print staff accounts after seeding')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except Exception:
            # Bootstrap schema when migrations have not been run; prefer `alembic upgrade head`
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

    with app.app_context():
        session = get_db()
        try:
            created_u = ensure_staff(session)
            created_s = 0 if args.no_demo else ensure_demo_sales(session)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Staff would create: {created_u}, Serials would create: {created_s}")
            else:
                session.commit()
                print(f"[DONE] Staff created: {created_u}, Serials created: {created_s}")
            if args.show_users:
                print('\nStaff:')
                print_staff(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
