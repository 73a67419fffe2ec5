"""
Canonical classification tables: the single source of truth for category,
exclusion, chain and relevancy heuristics.

The Normalizer and the Classifier import exclusively from here; both accept
replacement tables so the vocabularies can be swapped without touching
pipeline logic.
"""

# ── Yelp category aliases → canonical category ───────────────────────────────

YELP_CATEGORY_ALIASES: dict[str, frozenset[str]] = {
    "Food": frozenset({
        "restaurants", "food", "cafes", "coffee", "bakeries", "desserts", "bars",
        "icecream", "pizza", "mexican", "italian", "chinese", "japanese", "thai",
        "vietnamese", "korean", "indian", "mediterranean", "greek", "american",
        "southern", "bbq", "seafood", "sushi", "burgers", "sandwiches", "delis",
        "breakfast_brunch", "brunch", "diners", "steakhouses", "tacos", "tex-mex",
        "fastfood", "hotdogs", "chicken_wings", "chickenshop", "sportsbars", "pubs",
        "cocktailbars", "breweries", "juicebars", "bubbletea", "tea", "donuts",
        "bagels", "gelato", "froyo", "candy", "chocolate", "foodtrucks", "cajun",
        "soulfood", "waffles", "pancakes", "cuban", "latin", "caribbean", "asianfusion",
    }),
    "Retail": frozenset({
        "shopping", "fashion", "departmentstores", "grocery", "bookstores",
        "giftshops", "electronics", "furniture", "homeandgarden", "jewelry",
        "sportinggoods", "toys", "pets", "flowers", "cosmetics",
    }),
    "Services": frozenset({
        "localservices", "homeservices", "auto", "health", "beautysvc", "fitness",
        "education", "professional", "financialservices", "realestate", "eventservices",
        "petservices", "automotive", "hairsalons", "spas", "gyms", "yoga", "dentists",
        "doctors", "veterinarians",
    }),
}

# Aliases that are not "local businesses" for this catalog, rejected outright
YELP_EXCLUDED_ALIASES: frozenset[str] = frozenset({
    "parks", "playgrounds", "dog_parks", "publicservicesgovt", "landmarks",
    "hiking", "beaches", "lakes", "campgrounds", "publicgardens",
    "communitycenters", "libraries", "museums", "religiousorgs", "churches",
})

# Fallback scan of human-readable category titles
FOOD_TITLE_KEYWORDS: tuple[str, ...] = (
    "restaurant", "food", "cafe", "diner", "grill", "kitchen",
    "eatery", "bistro", "bar", "pub", "pizza", "burger", "taco", "sushi", "bbq",
    "bakery", "coffee", "tea", "ice cream", "dessert", "breakfast", "brunch",
)

# ── OpenStreetMap tags → canonical category ──────────────────────────────────

# Keys whose presence marks a feature as a potential business
OSM_TYPE_KEYS: tuple[str, ...] = ("shop", "amenity", "craft", "office", "healthcare")

OSM_FOOD_AMENITIES: frozenset[str] = frozenset({
    "restaurant", "cafe", "fast_food", "bar", "pub", "ice_cream",
    "food_court", "biergarten",
})

OSM_FOOD_SHOPS: frozenset[str] = frozenset({
    "bakery", "deli", "butcher", "confectionery", "coffee", "tea", "pastry",
    "cheese", "chocolate", "seafood", "greengrocer", "beverages", "alcohol",
    "wine", "ice_cream", "spices", "farm",
})

# Shops that sell a service rather than goods
OSM_SERVICE_SHOPS: frozenset[str] = frozenset({
    "hairdresser", "beauty", "massage", "tattoo", "laundry", "dry_cleaning",
    "car_repair", "tailor", "funeral_directors", "travel_agency", "copyshop",
    "pet_grooming", "nails", "locksmith", "storage_rental",
})

# Amenity values that are businesses but not food
OSM_SERVICE_AMENITIES: frozenset[str] = frozenset({
    "bank", "pharmacy", "dentist", "doctors", "clinic", "veterinary",
    "car_wash", "car_rental", "childcare", "driving_school", "fuel",
    "cinema", "nightclub", "theatre", "events_venue", "gym", "post_office",
})

# Tag key → values that are never local businesses
OSM_EXCLUDED_TAGS: dict[str, frozenset[str]] = {
    "amenity": frozenset({
        "place_of_worship", "library", "townhall", "courthouse", "police",
        "fire_station", "school", "kindergarten", "university", "college",
        "community_centre", "grave_yard", "social_facility", "public_bookcase",
        "shelter", "prison", "monastery",
    }),
    "tourism": frozenset({"museum", "attraction", "viewpoint", "artwork"}),
    "leisure": frozenset({
        "park", "playground", "dog_park", "nature_reserve", "garden",
        "pitch", "common",
    }),
    "office": frozenset({"government", "diplomatic", "religion"}),
    "building": frozenset({"church", "cathedral", "mosque", "synagogue", "temple"}),
}

# Feature types dropped in the Overpass query itself
OSM_NON_BUSINESS_AMENITIES: tuple[str, ...] = (
    "parking", "parking_space", "parking_entrance", "bicycle_parking", "bench",
    "waste_basket", "waste_disposal", "recycling", "atm", "vending_machine",
    "toilets", "post_box", "drinking_water", "charging_station", "telephone",
    "fountain", "clock",
)

# ── Chain detection ──────────────────────────────────────────────────────────

CHAIN_BRANDS: tuple[str, ...] = (
    "walmart", "target", "costco", "publix", "kroger", "whole foods",
    "cvs", "walgreens", "rite aid", "dollar general", "dollar tree",
    "mcdonald", "burger king", "wendy", "taco bell", "kfc", "subway",
    "starbucks", "dunkin", "chick-fil-a", "chipotle", "panera",
    "home depot", "lowe", "best buy", "petsmart", "petco",
    "shell", "chevron", "exxon", "bp", "mobil", "7-eleven", "wawa",
)

# ── Relevancy heuristics ─────────────────────────────────────────────────────

RELEVANCY_BASE = 50

LOCAL_NAME_KEYWORDS: tuple[str, ...] = (
    "family", "local", "hometown", "mom", "pop", "& son", "brothers",
)

# Shop / amenity subtypes that are almost always independently run
FAVORED_SUBTYPES: frozenset[str] = frozenset({
    "deli", "bakery", "cafe", "butcher", "greengrocer", "florist", "books",
    "gift", "antiques", "art", "bicycle", "tailor", "pastry", "cheese",
    "coffee", "tea", "ice_cream", "second_hand", "pub", "craft",
})

# Infrastructure that sometimes survives filtering mislabelled as a business
INFRASTRUCTURE_AMENITIES: frozenset[str] = frozenset({
    "parking", "parking_space", "parking_entrance", "bicycle_parking",
    "atm", "vending_machine", "charging_station",
})

# ── Presentation defaults ────────────────────────────────────────────────────

DEALS_BY_CATEGORY: dict[str, tuple[str, ...]] = {
    "Food": (
        "10% off lunch orders before 2 PM",
        "Buy 1 entrée, get a dessert free",
        "Free drink with any combo meal",
        "Happy hour: 20% off appetizers",
        "Family meal deal: $5 off",
    ),
    "Retail": (
        "15% off your first purchase",
        "BOGO 50% off select items",
        "Free gift wrapping today",
        "Spend $50, get $10 off",
        "Student discount: 10% off",
    ),
    "Services": (
        "First-time customer: 15% off",
        "Free consultation this week",
        "Refer a friend, both get $10 off",
        "Bundle service: save 20%",
        "Seasonal special: $25 off",
    ),
}

CATEGORY_IMAGES: dict[str, str] = {
    "Food": "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=400",
    "Retail": "https://images.unsplash.com/photo-1472851294608-062f824d29cc?w=400",
    "Services": "https://images.unsplash.com/photo-1581092918056-0c4c3acd3789?w=400",
}
