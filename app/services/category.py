"""
Category inference from free-text search queries and product names.
"""

# Checked in order; the first category with a matching keyword wins.
# Query keywords and name keywords differ slightly: product names like
# "Top Handle Bag" would otherwise be misread as tops.
CATEGORY_RULES = (
    ("top", ("top", "blouse", "shirt"), ("blouse", "shirt")),
    ("bottom", ("bottom", "trouser", "pant"), ("trouser", "pant")),
    ("outerwear", ("jacket", "coat", "blazer"), ("jacket", "coat", "blazer")),
    ("shoes", ("shoe", "boot", "sandal"), ("shoe", "boot", "sandal")),
    ("accessories", ("bag", "accessory", "jewelry"), ("bag", "accessory", "ring", "earring")),
)

OTHER_CATEGORY = "other"


def infer_category(query: str, product_name: str) -> str:
    """
    Map a search query and product name to an apparel category.

    Case-insensitive substring match; deterministic and side-effect free.

    Returns:
        'top', 'bottom', 'outerwear', 'shoes', 'accessories' or 'other'
    """
    lower_query = (query or "").lower()
    lower_name = (product_name or "").lower()

    for category, query_keywords, name_keywords in CATEGORY_RULES:
        if any(keyword in lower_query for keyword in query_keywords):
            return category
        if any(keyword in lower_name for keyword in name_keywords):
            return category

    return OTHER_CATEGORY
