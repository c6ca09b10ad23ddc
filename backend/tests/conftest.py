"""
Pytest fixtures for menuhub backend tests.

Provides test database setup, two tenants with their owners, a superuser,
token helpers, a fake media host and the Flask test client.
"""

from decimal import Decimal

import pytest
from menuhub import create_app
from menuhub.errors import MediaHostError
from menuhub.extensions import db
from menuhub.models import (
    Category, Commerce, OptionItem, Product, ProductOption, Role, Tag, TagType, User,
)
from menuhub.services import token_service
from menuhub.services.auth_service import hash_password, identity_for
from menuhub.services.media_service import MediaAsset

PASSWORD = "secret123"


class FakeMediaHost:
    """In-memory stand-in for CloudinaryMediaHost."""

    configured = True

    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False

    def upload(self, data, *, folder, public_id, filename="upload", content_type=None):
        if self.fail_uploads:
            raise MediaHostError("upload refused")
        self.uploads.append({"folder": folder, "public_id": public_id, "size": len(data)})
        return MediaAsset(
            url=f"https://res.cloudinary.com/demo/image/upload/v1700000000/{folder}/{public_id}.jpg",
            public_id=f"{folder}/{public_id}",
        )

    def delete(self, public_id):
        if self.fail_deletes:
            raise MediaHostError("delete refused")
        self.deleted.append(public_id)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-secret',
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def media_host(app):
    """Replace the media host with a recording fake for one test."""
    original = app.extensions["media_host"]
    fake = FakeMediaHost()
    app.extensions["media_host"] = fake
    yield fake
    app.extensions["media_host"] = original


def _make_user(db_session, email, role, commerce_id=None):
    user = User(
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        commerce_id=commerce_id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def commerce_a(db_session):
    """Create Commerce A (first tenant)."""
    commerce = Commerce(business_name="Pizza Nova", subdomain="pizzanova", business_category="Pizzeria")
    db_session.add(commerce)
    db_session.commit()
    return commerce


@pytest.fixture(scope='function')
def commerce_b(db_session):
    """Create Commerce B (second tenant)."""
    commerce = Commerce(business_name="Burger Barn", subdomain="burgerbarn", business_category="Burgers")
    db_session.add(commerce)
    db_session.commit()
    return commerce


@pytest.fixture(scope='function')
def owner_a(db_session, commerce_a):
    return _make_user(db_session, "owner@pizzanova.com", Role.OWNER, commerce_a.id)


@pytest.fixture(scope='function')
def owner_b(db_session, commerce_b):
    return _make_user(db_session, "owner@burgerbarn.com", Role.OWNER, commerce_b.id)


@pytest.fixture(scope='function')
def superuser(db_session):
    return _make_user(db_session, "admin@menuhub.local", Role.SUPERUSER)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def token_for(user: User) -> str:
    """Mint a bearer token for user without going through /login."""
    return token_service.sign(identity_for(user))


@pytest.fixture(scope='function')
def headers_a(owner_a):
    return auth_headers(token_for(owner_a))


@pytest.fixture(scope='function')
def headers_b(owner_b):
    return auth_headers(token_for(owner_b))


@pytest.fixture(scope='function')
def superuser_headers(superuser):
    return auth_headers(token_for(superuser))


@pytest.fixture(scope='function')
def catalog_a(db_session, commerce_a):
    """
    A small menu for Commerce A:

    Pizzas (position 0): "Margherita" with option "Size" (Small, Large,
    unavailable Family) and "Calzone"; Drinks (position 1): "Cola";
    Desserts (position 2): empty. Tags of every type, one of them hidden.
    """
    pizzas = Category(commerce_id=commerce_a.id, name="Pizzas", position=0)
    drinks = Category(commerce_id=commerce_a.id, name="Drinks", position=1)
    desserts = Category(commerce_id=commerce_a.id, name="Desserts", position=2)
    db_session.add_all([pizzas, drinks, desserts])
    db_session.flush()

    margherita = Product(
        commerce_id=commerce_a.id, category_id=pizzas.id, name="Margherita",
        description="Tomato and mozzarella", price=Decimal("9.50"),
        image_url="https://res.cloudinary.com/demo/image/upload/v1/products-images/product_1_margherita.jpg",
    )
    calzone = Product(commerce_id=commerce_a.id, category_id=pizzas.id, name="Calzone", price=Decimal("11.00"))
    cola = Product(commerce_id=commerce_a.id, category_id=drinks.id, name="Cola", price=Decimal("2.00"))
    db_session.add_all([margherita, calzone, cola])
    db_session.flush()

    size = ProductOption(product_id=margherita.id, name="Size", required=True, multiple=False)
    db_session.add(size)
    db_session.flush()

    small = OptionItem(option_id=size.id, name="Small", price_addition=Decimal("-1.00"))
    large = OptionItem(option_id=size.id, name="Large", price_addition=Decimal("2.50"))
    family = OptionItem(option_id=size.id, name="Family", price_addition=Decimal("6.00"), available=False)
    db_session.add_all([small, large, family])
    db_session.flush()

    vegan = Tag(commerce_id=commerce_a.id, name="Vegan", color="#00AA00", type=TagType.PRODUCT, priority=1)
    promo = Tag(commerce_id=commerce_a.id, name="2x1", color="#FF0000", type=TagType.PRODUCT, priority=5)
    hidden = Tag(commerce_id=commerce_a.id, name="Internal", color="#999999", type=TagType.PRODUCT, visible=False)
    popular = Tag(commerce_id=commerce_a.id, name="Popular", color="#0000FF", type=TagType.OPTION)
    spicy = Tag(commerce_id=commerce_a.id, name="Spicy", color="#FF8800", type=TagType.ITEM)
    db_session.add_all([vegan, promo, hidden, popular, spicy])
    db_session.flush()

    margherita.tags.extend([vegan, promo, hidden])
    size.tags.append(popular)
    large.tags.append(spicy)
    db_session.commit()

    return {
        "commerce": commerce_a,
        "pizzas": pizzas, "drinks": drinks, "desserts": desserts,
        "margherita": margherita, "calzone": calzone, "cola": cola,
        "size": size, "small": small, "large": large, "family": family,
        "vegan": vegan, "promo": promo, "hidden": hidden, "popular": popular, "spicy": spicy,
    }


@pytest.fixture(scope='function')
def catalog_b(db_session, commerce_b):
    """One category, product, option, item and tag per kind for Commerce B."""
    burgers = Category(commerce_id=commerce_b.id, name="Burgers", position=0)
    db_session.add(burgers)
    db_session.flush()

    classic = Product(commerce_id=commerce_b.id, category_id=burgers.id, name="Classic", price=Decimal("8.00"))
    db_session.add(classic)
    db_session.flush()

    extras = ProductOption(product_id=classic.id, name="Extras", multiple=True, max_selections=2)
    db_session.add(extras)
    db_session.flush()

    bacon = OptionItem(option_id=extras.id, name="Bacon", price_addition=Decimal("1.50"))
    db_session.add(bacon)

    product_tag = Tag(commerce_id=commerce_b.id, name="New", color="#123456", type=TagType.PRODUCT)
    option_tag = Tag(commerce_id=commerce_b.id, name="Choose", color="#123456", type=TagType.OPTION)
    item_tag = Tag(commerce_id=commerce_b.id, name="Crispy", color="#123456", type=TagType.ITEM)
    db_session.add_all([product_tag, option_tag, item_tag])
    db_session.commit()

    return {
        "commerce": commerce_b,
        "burgers": burgers, "classic": classic, "extras": extras, "bacon": bacon,
        "product_tag": product_tag, "option_tag": option_tag, "item_tag": item_tag,
    }
