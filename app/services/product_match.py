"""
Product/query consistency checks for outfit item search results.

Search results often ignore part of a query ("long sleeve" returning a tank
top). These rules reject clear contradictions between the planned query and
a product; anything not clearly contradictory passes.
"""
from typing import Iterable, Optional, Sequence

from app.api.v1.schemas.outfit import ProductPayload

# (query term, title terms that contradict it, title term that overrides the conflict)
TITLE_CONFLICTS = (
    ("long sleeve", ("short sleeve", "sleeveless", "tank"), None),
    ("short sleeve", ("long sleeve",), None),
    ("sleeveless", ("sleeve",), "sleeveless"),
    ("fitted", ("oversized", "relaxed", "loose"), None),
    ("oversized", ("fitted", "slim", "tailored fit"), None),
    ("dress", ("top", "shirt", "blouse"), "dress"),
    ("sweater", ("shirt", "blouse"), "sweater"),
    ("midi", ("mini", "short"), None),
    ("mini", ("midi", "maxi", "long"), None),
    ("turtleneck", ("v-neck", "scoop neck", "crew neck"), "turtleneck"),
    ("v-neck", ("turtleneck",), None),
    ("wide leg", ("skinny", "slim fit", "tapered"), None),
    ("skinny", ("wide leg", "straight leg"), None),
)

PATTERN_TERMS = (
    "spot", "print", "pattern", "stripe", "geo", "geometric", "floral", "polka",
    "dot", "check", "plaid", "paisley", "animal", "leopard", "zebra",
)

MATERIAL_TERMS = (
    "wool", "cashmere", "silk", "cotton", "linen", "leather", "suede", "denim",
    "polyester", "nylon", "merino", "alpaca", "mohair",
)
PREMIUM_MATERIALS = {"cashmere", "silk", "merino", "alpaca"}
MATERIAL_CONFLICTS = {
    "wool": ("polyester", "nylon", "acrylic"),
    "cashmere": ("polyester", "nylon", "acrylic"),
    "silk": ("polyester", "nylon"),
    "cotton": ("polyester", "nylon"),
    "leather": ("faux leather", "vegan leather", "pleather"),
}

COLOR_TERMS = (
    "black", "white", "navy", "beige", "cream", "tan", "brown", "gray", "grey",
    "red", "blue", "green", "pink", "yellow", "orange", "purple",
)
COLOR_CONFLICTS = {
    "black": ("white", "cream", "beige"),
    "white": ("black", "navy"),
    "navy": ("white", "cream"),
}


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def wants_minimal(styles: Optional[Sequence[str]]) -> bool:
    return any("minimal" in style.lower() for style in styles or ())


def _materials_match(query_materials, product_materials) -> bool:
    """Loose match in either direction, e.g. "merino" vs "merino wool blend"."""
    return any(
        material in pm or pm.split(" ")[0] in material
        for material in query_materials
        for pm in product_materials
        if pm
    )


def validate_product_match(
    product: ProductPayload, query: str, styles: Optional[Sequence[str]] = None
) -> bool:
    """
    True unless the product clearly contradicts the query or the styles.

    Title-only checks cover sleeves, fit, garment type, length, neckline and
    leg shape. Materials are compared against the product's materials list and
    description; colors only against the title. Minimalist styles reject
    patterned products.
    """
    query_text = query.lower()
    title = product.name.lower()
    product_materials = [m.lower() for m in product.materials or []]
    all_text = " ".join(
        [
            title,
            (product.description or "").lower(),
            *product_materials,
            *(f.lower() for f in product.key_features or []),
        ]
    )

    for query_term, contradicting, override in TITLE_CONFLICTS:
        if query_term not in query_text or not _contains_any(title, contradicting):
            continue
        if override and override in title:
            continue
        return False

    if wants_minimal(styles) and _contains_any(all_text, PATTERN_TERMS):
        return False

    query_materials = [m for m in MATERIAL_TERMS if m in query_text]
    if (
        query_materials
        and product_materials
        and PREMIUM_MATERIALS.intersection(query_materials)
        and not _materials_match(query_materials, product_materials)
    ):
        return False
    for material in query_materials:
        conflicts = MATERIAL_CONFLICTS.get(material, ())
        if _contains_any(all_text, conflicts) and material not in all_text:
            return False

    for color in (c for c in COLOR_TERMS if c in query_text):
        conflicts = COLOR_CONFLICTS.get(color, ())
        if _contains_any(title, conflicts) and color not in title:
            return False

    return True
