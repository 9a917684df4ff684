# Overview: Single-table query capabilities, one class per entity type.
#
# Every repository is constructed with an explicit SQLAlchemy session;
# nothing in this package reaches for a module-level database handle.

from .category_repository import CategoryRepository
from .product_repository import ProductRepository
from .user_repository import UserRepository, SessionTokenRepository
from .transaction_repository import TransactionRepository, TransactionItemRepository
from .sequence_repository import SequenceRepository
from .setting_repository import SettingRepository

__all__ = [
    "CategoryRepository",
    "ProductRepository",
    "UserRepository",
    "SessionTokenRepository",
    "TransactionRepository",
    "TransactionItemRepository",
    "SequenceRepository",
    "SettingRepository",
]
