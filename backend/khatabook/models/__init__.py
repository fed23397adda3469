from khatabook.models.user import User
from khatabook.models.customer import Customer
from khatabook.models.transaction import Transaction, TransactionType, PaymentMethod

__all__ = ["User", "Customer", "Transaction", "TransactionType", "PaymentMethod"]
