from careguard.integrations.contracts.interfaces import Product
from careguard.view_router import PRODUCT_NOT_FOUND, resolve_page

PRODUCTS = [Product(id="1", name="Premium Surgical Gown", category="Sterile")]


def test_static_pages_and_hash_prefix():
    assert resolve_page("#/products", PRODUCTS).page == "products"
    assert resolve_page("/about", PRODUCTS).page == "about"
    assert resolve_page("", PRODUCTS).page == "home"
    assert resolve_page("#/", PRODUCTS).page == "home"


def test_unknown_paths_land_on_home():
    assert resolve_page("/nowhere", PRODUCTS).page == "home"


def test_product_and_inquiry_pages():
    detail = resolve_page("#/product/1", PRODUCTS)
    assert detail.page == "product_detail"
    assert detail.product_id == "1"
    assert resolve_page("/inquiry/1", PRODUCTS).page == "inquiry"


def test_unknown_product_id():
    page = resolve_page("/product/99", PRODUCTS)
    assert page.page == "not_found"
    assert page.message == PRODUCT_NOT_FOUND
    assert resolve_page("/inquiry/99", PRODUCTS).message == PRODUCT_NOT_FOUND


def test_admin_depends_on_session():
    assert resolve_page("/admin", PRODUCTS, authenticated=False).page == "admin_login"
    assert resolve_page("#/admin", PRODUCTS, authenticated=True).page == "admin"
