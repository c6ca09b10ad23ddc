# Overview: Pytest coverage for the public menu endpoint.

"""
Public Menu Tests

The menu document is public, keyed by subdomain, and must:
1. Order categories by (position, id) and products by (name, id)
2. Keep empty categories with products: []
3. Show only visible tags, ordered by priority desc then name
4. Show only available items
5. Never leak another commerce's rows
"""

from menuhub.models import Category


def _get_menu(client, subdomain):
    return client.get(f'/api/public/{subdomain}')


class TestMenuLookup:

    def test_unknown_subdomain_is_404(self, client, db_session, commerce_a):
        response = _get_menu(client, 'does-not-exist')

        assert response.status_code == 404
        assert response.json == {"error": "Commerce not found"}

    def test_subdomain_lookup_is_case_insensitive(self, client, db_session, catalog_a):
        response = _get_menu(client, 'PizzaNova')

        assert response.status_code == 200
        assert response.json["tenant"]["subdomain"] == "pizzanova"

    def test_no_authentication_required(self, client, db_session, catalog_a):
        response = _get_menu(client, 'pizzanova')
        assert response.status_code == 200

    def test_tenant_block_has_no_private_fields(self, client, db_session, catalog_a):
        tenant = _get_menu(client, 'pizzanova').json["tenant"]

        assert tenant["business_name"] == "Pizza Nova"
        assert "owner_name" not in tenant
        assert "address" not in tenant


class TestMenuShape:

    def test_categories_ordered_by_position(self, client, db_session, catalog_a):
        names = [c["name"] for c in _get_menu(client, 'pizzanova').json["categories"]]
        assert names == ["Pizzas", "Drinks", "Desserts"]

    def test_position_ties_break_by_id(self, client, db_session, catalog_a, commerce_a):
        extra = Category(commerce_id=commerce_a.id, name="Starters", position=1)
        db_session.add(extra)
        db_session.commit()

        names = [c["name"] for c in _get_menu(client, 'pizzanova').json["categories"]]
        assert names == ["Pizzas", "Drinks", "Starters", "Desserts"]

    def test_empty_category_has_empty_products(self, client, db_session, catalog_a):
        categories = {c["name"]: c for c in _get_menu(client, 'pizzanova').json["categories"]}
        assert categories["Desserts"]["products"] == []

    def test_products_ordered_by_name(self, client, db_session, catalog_a):
        categories = {c["name"]: c for c in _get_menu(client, 'pizzanova').json["categories"]}
        assert [p["name"] for p in categories["Pizzas"]["products"]] == ["Calzone", "Margherita"]

    def test_prices_are_two_decimal_strings(self, client, db_session, catalog_a):
        categories = {c["name"]: c for c in _get_menu(client, 'pizzanova').json["categories"]}
        margherita = categories["Pizzas"]["products"][1]

        assert margherita["price"] == "9.50"
        items = margherita["options"][0]["items"]
        assert items[0]["price_addition"] == "-1.00"


class TestMenuFiltering:

    def _margherita(self, client):
        categories = {c["name"]: c for c in _get_menu(client, 'pizzanova').json["categories"]}
        return next(p for p in categories["Pizzas"]["products"] if p["name"] == "Margherita")

    def test_only_visible_product_tags_in_priority_order(self, client, db_session, catalog_a):
        margherita = self._margherita(client)
        assert [t["name"] for t in margherita["tags"]] == ["2x1", "Vegan"]

    def test_option_and_item_tags(self, client, db_session, catalog_a):
        option = self._margherita(client)["options"][0]

        assert [t["name"] for t in option["tags"]] == ["Popular"]
        tags_by_item = {i["name"]: [t["name"] for t in i["tags"]] for i in option["items"]}
        assert tags_by_item == {"Small": [], "Large": ["Spicy"]}

    def test_unavailable_items_are_hidden(self, client, db_session, catalog_a):
        option = self._margherita(client)["options"][0]

        assert [i["name"] for i in option["items"]] == ["Small", "Large"]
        assert all(i["available"] for i in option["items"])

    def test_hidden_tag_on_option_is_filtered(self, client, db_session, catalog_a):
        catalog_a["popular"].visible = False
        db_session.commit()

        option = self._margherita(client)["options"][0]
        assert option["tags"] == []

    def test_single_choice_option_reports_null_max_selections(self, client, db_session, catalog_a):
        option = self._margherita(client)["options"][0]

        assert option["multiple"] is False
        assert option["max_selections"] is None


class TestMenuIsolation:

    def test_menu_contains_only_own_rows(self, client, db_session, catalog_a, catalog_b):
        menu_a = _get_menu(client, 'pizzanova').json
        menu_b = _get_menu(client, 'burgerbarn').json

        product_names_a = {p["name"] for c in menu_a["categories"] for p in c["products"]}
        product_names_b = {p["name"] for c in menu_b["categories"] for p in c["products"]}

        assert product_names_a == {"Margherita", "Calzone", "Cola"}
        assert product_names_b == {"Classic"}

    def test_multiple_option_keeps_max_selections(self, client, db_session, catalog_b):
        menu = _get_menu(client, 'burgerbarn').json
        option = menu["categories"][0]["products"][0]["options"][0]

        assert option["multiple"] is True
        assert option["max_selections"] == 2
