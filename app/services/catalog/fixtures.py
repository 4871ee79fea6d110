"""
Demo-Katalog: Geräte, Zubehör, Nutzer-Events und Feiertagskalender.

Statische Fixture-Daten für die InMemoryCatalog-Implementierung. In einer
echten Umgebung kommen diese Daten aus der Marktplatz-API.
"""

from datetime import date, datetime, timezone

from app.models.pydantic import Holiday, Item, UserEvent

SNAPSHOT_DATE = date(2025, 11, 15)


def _device(item_id, title, price, brand, category, **kw) -> Item:
    return Item(
        item_id=item_id,
        title=title,
        price=price,
        brand=brand,
        category=category,
        item_type="device",
        free_shipping=True,
        image_url=f"https://i.ebayimg.com/images/g/{item_id.split('|')[-1]}.jpg",
        **kw,
    )


def _accessory(item_id, title, price, brand, category, compatible_brands, device_category, **kw) -> Item:
    return Item(
        item_id=item_id,
        title=title,
        price=price,
        brand=brand,
        category=category,
        item_type="accessory",
        compatible_brands=compatible_brands,
        device_category=device_category,
        image_url=f"https://i.ebayimg.com/images/g/{item_id.split('|')[-1]}.jpg",
        **kw,
    )


ITEMS = [
    # --- Geräte ---
    _device("v1|itm|camera_sony_a7iv", "Sony Alpha 7 IV Full-Frame Mirrorless Camera", 2499.99, "Sony", "Cameras & Photo"),
    _device("v1|itm|camera_canon_r5", "Canon EOS R5 Mirrorless Camera Body", 3899.00, "Canon", "Cameras & Photo"),
    _device("v1|itm|camera_nikon_z8", "Nikon Z8 Full-Frame Mirrorless Camera", 3999.95, "Nikon", "Cameras & Photo"),
    _device("v1|itm|phone_iphone_15_pro", "Apple iPhone 15 Pro Max 256GB", 1199.00, "Apple", "Cell Phones & Smartphones"),
    _device("v1|itm|phone_samsung_s24", "Samsung Galaxy S24 Ultra 512GB", 1299.99, "Samsung", "Cell Phones & Smartphones"),
    _device("v1|itm|phone_pixel_8_pro", "Google Pixel 8 Pro 128GB", 999.00, "Google", "Cell Phones & Smartphones"),
    _device("v1|itm|phone_oneplus_12", "OnePlus 12 256GB", 799.99, "OnePlus", "Cell Phones & Smartphones"),
    _device("v1|itm|laptop_macbook_pro_16", "Apple MacBook Pro 16\" M3 Max Chip", 3499.00, "Apple", "Laptops & Notebooks"),
    _device("v1|itm|headphone_sony_xm5", "Sony WH-1000XM5 Noise Cancelling Headphones", 399.99, "Sony", "Headphones"),
    _device("v1|itm|drone_dji_mavic3", "DJI Mavic 3 Pro Drone with Camera", 2199.00, "DJI", "Cameras & Drones"),
    # --- Zubehör ---
    _accessory("v1|itm|lens_sony_50mm", "Sony FE 50mm f/1.8 Lens", 248.00, "Sony", "Camera Lenses", ["Sony"], "Cameras & Photo", free_shipping=True),
    _accessory("v1|itm|lens_canon_50mm", "Canon RF 50mm f/1.8 STM Lens", 199.00, "Canon", "Camera Lenses", ["Canon"], "Cameras & Photo", free_shipping=True),
    _accessory("v1|itm|bag_peak_everyday", "Peak Design Everyday Backpack 20L", 279.95, "Peak Design", "Camera Bags", ["Sony", "Canon", "Nikon"], "Cameras & Photo"),
    _accessory("v1|itm|tripod_manfrotto", "Manfrotto Befree Advanced Travel Tripod", 189.00, "Manfrotto", "Tripods", ["Sony", "Canon", "Nikon", "DJI"], "Cameras & Photo"),
    _accessory("v1|itm|case_iphone_magsafe", "Apple iPhone 15 Pro Max Silicone Case with MagSafe", 49.00, "Apple", "Cases", ["Apple"], "Cell Phones & Smartphones", free_shipping=True),
    _accessory("v1|itm|case_samsung_s24", "Samsung Galaxy S24 Ultra Standing Grip Case", 39.99, "Samsung", "Cases", ["Samsung"], "Cell Phones & Smartphones"),
    _accessory("v1|itm|charger_anker_65w", "Anker 735 Charger 65W GaNPrime", 45.99, "Anker", "Chargers", ["Apple", "Samsung", "Google"], "Cell Phones & Smartphones", free_shipping=True),
    _accessory("v1|itm|mouse_logitech_mx3", "Logitech MX Master 3S Wireless Mouse", 99.99, "Logitech", "Mice", ["Apple", "Dell", "Lenovo"], "Laptops & Notebooks"),
    _accessory("v1|itm|dock_caldigit_ts4", "CalDigit TS4 Thunderbolt 4 Dock", 399.99, "CalDigit", "Docks", ["Apple"], "Laptops & Notebooks"),
    # abverkauft, für Tests auf inaktive Items
    Item(
        item_id="v1|itm|discontinued",
        title="Discontinued Item - Test",
        price=99.99,
        brand="Unknown",
        category="Test",
        is_active=False,
    ),
]


def _ev(event_type: str, item_id: str, ts: str) -> UserEvent:
    return UserEvent(
        event_type=event_type,
        item_id=item_id,
        timestamp=datetime.fromisoformat(ts).replace(tzinfo=timezone.utc),
    )


USER_EVENTS = {
    # Kamera angesehen und in den Warenkorb gelegt, nicht gekauft
    "user_001": [
        _ev("view", "v1|itm|camera_sony_a7iv", "2025-11-10T10:00:00"),
        _ev("view", "v1|itm|lens_sony_50mm", "2025-11-10T10:05:00"),
        _ev("add_to_cart", "v1|itm|camera_sony_a7iv", "2025-11-10T10:30:00"),
        _ev("view", "v1|itm|headphone_sony_xm5", "2025-11-12T14:00:00"),
    ],
    # iPhone gekauft -> Zubehör
    "user_002": [
        _ev("view", "v1|itm|phone_iphone_15_pro", "2025-11-11T09:00:00"),
        _ev("view", "v1|itm|phone_samsung_s24", "2025-11-11T09:15:00"),
        _ev("purchase", "v1|itm|phone_iphone_15_pro", "2025-11-11T10:00:00"),
    ],
    # Samsung gekauft -> Zubehör
    "user_003": [
        _ev("view", "v1|itm|phone_samsung_s24", "2025-11-12T14:00:00"),
        _ev("add_to_cart", "v1|itm|phone_samsung_s24", "2025-11-12T14:15:00"),
        _ev("purchase", "v1|itm|phone_samsung_s24", "2025-11-12T14:30:00"),
    ],
    # Kamera gekauft -> Objektive, Taschen, Stative
    "user_004": [
        _ev("view", "v1|itm|camera_canon_r5", "2025-11-13T10:00:00"),
        _ev("purchase", "v1|itm|camera_canon_r5", "2025-11-13T11:00:00"),
    ],
    # nur Handys angesehen
    "user_005": [
        _ev("view", "v1|itm|phone_iphone_15_pro", "2025-11-13T15:00:00"),
        _ev("view", "v1|itm|phone_pixel_8_pro", "2025-11-13T15:10:00"),
        _ev("view", "v1|itm|phone_oneplus_12", "2025-11-13T15:20:00"),
    ],
    # Laptop gekauft -> Maus, Dock
    "user_006": [
        _ev("view", "v1|itm|laptop_macbook_pro_16", "2025-11-14T09:00:00"),
        _ev("purchase", "v1|itm|laptop_macbook_pro_16", "2025-11-14T10:00:00"),
    ],
}


HOLIDAYS = [
    Holiday(name="Black Friday", start_date=date(2025, 11, 28), end_date=date(2025, 11, 29), locale="en-US"),
    Holiday(name="Cyber Monday", start_date=date(2025, 12, 1), end_date=date(2025, 12, 2), locale="en-US"),
    Holiday(name="Singles Day", start_date=date(2025, 11, 11), end_date=date(2025, 11, 11), locale="en-US"),
    Holiday(name="Christmas", start_date=date(2025, 12, 24), end_date=date(2025, 12, 25), locale="en-US"),
    Holiday(name="New Year", start_date=date(2025, 12, 31), end_date=date(2026, 1, 1), locale="en-US"),
    Holiday(name="双十一", start_date=date(2025, 11, 11), end_date=date(2025, 11, 11), locale="zh-CN"),
]
