# Overview: Wires repositories into services; one Services container per app.

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from .repositories import (
    CategoryRepository,
    ProductRepository,
    SequenceRepository,
    SessionTokenRepository,
    SettingRepository,
    TransactionItemRepository,
    TransactionRepository,
    UserRepository,
)
from .services.auth_service import AuthService
from .services.category_service import CategoryService
from .services.inventory_service import InventoryService
from .services.product_service import ProductService
from .services.report_service import ReportService
from .services.session_service import SessionService
from .services.setting_service import SettingService
from .services.transaction_service import TransactionService

EXTENSION_KEY = "cashier"


@dataclass
class Services:
    categories: CategoryService
    products: ProductService
    inventory: InventoryService
    transactions: TransactionService
    reports: ReportService
    sessions: SessionService
    auth: AuthService
    settings: SettingService


def build_services(session, config: dict) -> Services:
    """
    Construct every service around one session.

    `session` is normally Flask-SQLAlchemy's scoped `db.session`, so the
    container can be shared by all requests and threads of an app.
    """
    products = ProductRepository(session)
    categories = CategoryRepository(session)
    users = UserRepository(session)
    transactions = TransactionRepository(session)

    inventory = InventoryService(session, products)
    sessions = SessionService(
        session,
        SessionTokenRepository(session),
        absolute_timeout=timedelta(hours=config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24)),
        idle_timeout=timedelta(hours=config.get("SESSION_IDLE_TIMEOUT_HOURS", 2)),
    )

    return Services(
        categories=CategoryService(session, categories),
        products=ProductService(session, products, categories, inventory),
        inventory=inventory,
        transactions=TransactionService(
            session,
            transactions,
            products,
            users,
            SequenceRepository(session),
            inventory,
        ),
        reports=ReportService(
            transactions,
            TransactionItemRepository(session),
            products,
            low_stock_threshold=config.get("LOW_STOCK_THRESHOLD", 10),
        ),
        sessions=sessions,
        auth=AuthService(session, users, sessions),
        settings=SettingService(session, SettingRepository(session)),
    )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
