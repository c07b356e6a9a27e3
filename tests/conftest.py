import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models.catalog import Collection, Product, ProductVariant
from models.users import User
from utils.hashing import get_password_hash
from utils.text import slugify
from utils.tokenJWT import create_access_token


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'storefront-test.db'}",
        SECRET_KEY="test-secret",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def app(settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture()
def make_product(db):
    """Insert a product; variants are (size, color, stock) tuples."""

    def _make(title="Linen Shirt", price=60.0, variants=(("M", "White", 5),), category="Shirts", **kwargs):
        product = Product(
            title=title,
            description=kwargs.pop("description", f"{title} description"),
            price=price,
            category=category,
            images=kwargs.pop("images", [f"/img/{slugify(title)}.jpg"]),
            slug=slugify(title),
            variants=[
                ProductVariant(position=i, size=size, color=color, stock=stock)
                for i, (size, color, stock) in enumerate(variants)
            ],
            **kwargs,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture()
def make_collection(db):
    def _make(name="Summer", slug="summer", featured=False):
        collection = Collection(name=name, slug=slug, featured=featured)
        db.add(collection)
        db.commit()
        db.refresh(collection)
        return collection

    return _make


@pytest.fixture()
def make_user(db):
    def _make(email="jane@example.com", role="user", password="secret123", name="Jane Doe"):
        user = User(email=email, password_hash=get_password_hash(password), name=name, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def auth_headers(settings):
    def _headers(user):
        token = create_access_token({"sub": user.email, "role": user.role}, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def admin_headers(make_user, auth_headers):
    admin = make_user(email="admin@example.com", role="admin", name="Admin")
    return auth_headers(admin)


def variant_stock(db, product_id, size, color):
    db.expire_all()
    return (
        db.query(ProductVariant.stock)
        .filter_by(product_id=product_id, size=size, color=color)
        .scalar()
    )


def shipping_address(**overrides):
    address = {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-0100",
        "address": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
    }
    address.update(overrides)
    return address


def order_line(product, quantity=1, size="M", color="White", price=None):
    return {
        "product_id": product.id,
        "title": product.title,
        "price": product.price if price is None else price,
        "quantity": quantity,
        "size": size,
        "color": color,
        "image": product.images[0],
    }
