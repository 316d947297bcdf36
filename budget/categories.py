import logging

from .models import Category, TransactionType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Previous Month Balance", TransactionType.ROLLOVER),

    # Income
    ("Salary", TransactionType.INCOME),
    ("Freelance", TransactionType.INCOME),
    ("Pension", TransactionType.INCOME),
    ("Extra Income", TransactionType.INCOME),
    ("Investments (Dividends/Yields)", TransactionType.INCOME),
    ("Gifts (Received)", TransactionType.INCOME),

    # Needs
    ("Rent/Mortgage", TransactionType.NEEDS),
    ("Groceries", TransactionType.NEEDS),
    ("Utilities (Water, Electricity, Gas)", TransactionType.NEEDS),
    ("Internet", TransactionType.NEEDS),
    ("Phone Bill", TransactionType.NEEDS),
    ("Transportation", TransactionType.NEEDS),
    ("Health (Insurance, Medicine)", TransactionType.NEEDS),
    ("Insurances (Car, Home)", TransactionType.NEEDS),

    # Wants
    ("Restaurants/Takeaway", TransactionType.WANTS),
    ("Coffee", TransactionType.WANTS),
    ("Snacks/Convenience Store", TransactionType.WANTS),
    ("Shopping (Clothes & Goods)", TransactionType.WANTS),
    ("Games", TransactionType.WANTS),
    ("Subscriptions (Netflix, Apple, Gym)", TransactionType.WANTS),
    ("Personal Care (Haircut, Deodorant)", TransactionType.WANTS),
    ("Leisure/Hobbies", TransactionType.WANTS),
    ("Gifts (Given)", TransactionType.WANTS),
    ("Travel", TransactionType.WANTS),

    # Reserves
    ("Emergency Fund", TransactionType.RESERVES),
    ("General Savings", TransactionType.RESERVES),
    ("Travel Fund", TransactionType.RESERVES),
    ("Major Purchase Fund (Car, House)", TransactionType.RESERVES),

    # Investments
    ("Cryptocurrency", TransactionType.INVESTMENTS),
    ("Stocks", TransactionType.INVESTMENTS),
    ("Real Estate Funds", TransactionType.INVESTMENTS),
    ("Fixed Income", TransactionType.INVESTMENTS),
    ("Retirement Fund", TransactionType.INVESTMENTS),
]


def initialize_default_categories(user) -> int:
    """
    Create whichever default categories the user is missing.
    Returns how many were actually created.
    """
    created_count = 0
    for name, category_type in DEFAULT_CATEGORIES:
        _, created = Category.objects.get_or_create(user=user, name=name, type=category_type)
        if created:
            created_count += 1

    if created_count:
        logger.info("Created %d default categories for user %s", created_count, user.pk)
    return created_count
