"""Curated grocery lexicons shipped with the matcher.

SYNONYM_LEXICON maps a canonical product name to shopper spellings of it.
Keys and synonyms are normalized when a catalog snapshot is built, and an
entry only applies to products whose canonical name normalizes to the key.
Catalog synonyms take precedence over lexicon synonyms.
"""

# Curated brand lexicon (normalized); merged with catalog brands at runtime
BRAND_LEXICON = frozenset({
    "kedem", "bartenura", "manischewitz", "osem", "lieber", "gefen",
    "golden flow", "chalav", "yeo valley", "mehadrin", "kedassia",
    "beth din", "heinz", "coca cola", "pepsi", "nestle", "cadbury", "mars",
    "ferrero", "tnuva", "elite", "telma", "haddar", "rakusen", "schmaltz",
})

SYNONYM_LEXICON = {
    "milk": ("mlk", "milk2pt", "milk2pint", "milkpint", "fresh milk"),
    "bread": ("brd", "loaf", "brown bread"),
    "challah": ("challa", "chalah", "halla", "challah bread", "shabbat bread"),
    "eggs": ("egg", "egss", "large eggs", "medium eggs"),
    "chicken": ("chkn", "chickn", "roasting chicken"),
    "chicken breast": ("chkn brst", "breast", "chicken breasts"),
    "grape juice": ("grp juice", "red grape juice"),
    "butter": ("bttr", "butr", "salted butter"),
    "cheese": ("ches", "chse", "cheddar", "mild cheddar", "mature cheddar"),
    "beef": ("ground beef", "mince", "minced beef", "beef mince"),
    "wine": ("kiddush wine", "kidush wine", "red wine", "sweet wine"),
    "kiddush wine": ("kidush wine",),
    "potatoes": ("spuds", "new potatoes", "baking potatoes"),
    "tomatoes": ("tomatoe", "plum tomatoes"),
    "onions": ("onyons", "onyon"),
    "oil": ("olive oil", "vegetable oil", "sunflower oil", "cooking oil"),
    "rice": ("basmati rice", "long grain rice", "jasmine rice", "white rice"),
    "fish": ("salmon", "cod", "fresh fish", "white fish"),
    "apple": ("red apples", "green apples", "gala apples"),
    "banana": ("ripe bananas",),
    "yogurt": ("yoghurt", "greek yogurt", "natural yogurt"),
}
