# Overview: Pytest coverage for commerce onboarding, updates, branding images and deletion.

import io

from menuhub.models import Category, Commerce, OptionItem, Product, Role, Tag, User, item_tags


def _onboarding_payload(**overrides):
    payload = {
        "business_name": "Taco Town",
        "subdomain": "tacotown",
        "business_category": "Mexican",
        "owner": {
            "email": "owner@tacotown.com",
            "password": "secret123",
            "first_name": "Ana",
            "last_name": "Lopez",
        },
    }
    payload.update(overrides)
    return payload


class TestCreateCommerce:

    def test_creates_commerce_and_owner(self, client, db_session, superuser_headers):
        response = client.post('/api/commerces', json=_onboarding_payload(), headers=superuser_headers)

        assert response.status_code == 201
        commerce_id = response.json["commerce"]["id"]
        assert response.json["commerce"]["subdomain"] == "tacotown"
        assert response.json["commerce"]["owner_name"] == "Ana Lopez"
        assert response.json["owner"]["role"] == "OWNER"
        assert response.json["owner"]["commerce_id"] == commerce_id

        owners = db_session.query(User).filter_by(commerce_id=commerce_id).all()
        assert len(owners) == 1
        assert owners[0].role is Role.OWNER

    def test_new_owner_can_log_in(self, client, superuser_headers):
        client.post('/api/commerces', json=_onboarding_payload(), headers=superuser_headers)

        response = client.post('/api/auth/login', json={
            "email": "owner@tacotown.com",
            "password": "secret123",
        })
        assert response.status_code == 200

    def test_subdomain_is_normalized(self, client, superuser_headers):
        response = client.post(
            '/api/commerces', json=_onboarding_payload(subdomain="TacoTown"), headers=superuser_headers
        )
        assert response.json["commerce"]["subdomain"] == "tacotown"

    def test_duplicate_subdomain(self, client, db_session, superuser_headers, commerce_a):
        response = client.post(
            '/api/commerces', json=_onboarding_payload(subdomain="pizzanova"), headers=superuser_headers
        )

        assert response.status_code == 400
        assert response.json["field"] == "subdomain"
        assert db_session.query(User).filter_by(email="owner@tacotown.com").count() == 0

    def test_duplicate_owner_email_rolls_back_commerce(self, client, db_session, superuser_headers, owner_a):
        payload = _onboarding_payload()
        payload["owner"]["email"] = "owner@pizzanova.com"

        response = client.post('/api/commerces', json=payload, headers=superuser_headers)

        assert response.status_code == 400
        assert response.json["field"] == "email"
        assert db_session.query(Commerce).filter_by(subdomain="tacotown").count() == 0

    def test_invalid_subdomain(self, client, superuser_headers):
        response = client.post(
            '/api/commerces', json=_onboarding_payload(subdomain="taco town!"), headers=superuser_headers
        )
        assert response.status_code == 400

    def test_missing_owner(self, client, db_session, superuser_headers):
        payload = _onboarding_payload()
        del payload["owner"]

        response = client.post('/api/commerces', json=payload, headers=superuser_headers)

        assert response.status_code == 400
        assert db_session.query(Commerce).count() == 0

    def test_owner_cannot_create(self, client, headers_a):
        response = client.post('/api/commerces', json=_onboarding_payload(), headers=headers_a)
        assert response.status_code == 403


class TestReadUpdateCommerce:

    def test_list_is_superuser_only(self, client, headers_a, superuser_headers, commerce_a, commerce_b):
        assert client.get('/api/commerces', headers=headers_a).status_code == 403

        response = client.get('/api/commerces', headers=superuser_headers)
        assert response.status_code == 200
        assert {c["subdomain"] for c in response.json} == {"pizzanova", "burgerbarn"}

    def test_owner_reads_own_commerce(self, client, headers_a, commerce_a):
        response = client.get(f'/api/commerces/{commerce_a.id}', headers=headers_a)

        assert response.status_code == 200
        assert response.json["business_name"] == "Pizza Nova"

    def test_owner_updates_operational_fields(self, client, headers_a, commerce_a):
        response = client.put(f'/api/commerces/{commerce_a.id}', json={
            "is_open": False,
            "delivery_fee": "3.5",
            "social_instagram": "@pizzanova",
        }, headers=headers_a)

        assert response.status_code == 200
        assert response.json["is_open"] is False
        assert response.json["delivery_fee"] == "3.50"
        assert response.json["social_instagram"] == "@pizzanova"

    def test_owner_cannot_change_subdomain(self, client, headers_a, commerce_a):
        response = client.put(f'/api/commerces/{commerce_a.id}', json={"subdomain": "mine"}, headers=headers_a)
        assert response.status_code == 400

    def test_superuser_subdomain_change_checks_uniqueness(self, client, superuser_headers, commerce_a, commerce_b):
        response = client.put(
            f'/api/commerces/{commerce_a.id}', json={"subdomain": "burgerbarn"}, headers=superuser_headers
        )

        assert response.status_code == 400
        assert response.json["field"] == "subdomain"


class TestBrandingImages:

    def _image(self, name="logo.png", content=b"\x89PNG fake image bytes"):
        return {"image": (io.BytesIO(content), name, "image/png")}

    def test_update_logo(self, client, headers_a, commerce_a, media_host):
        response = client.put(
            f'/api/commerces/{commerce_a.id}/update-logo',
            data=self._image(),
            headers=headers_a,
            content_type='multipart/form-data',
        )

        assert response.status_code == 200
        assert "/commerces-logos/" in response.json["logo_url"]
        assert media_host.uploads[0]["folder"] == "commerces-logos"

    def test_replacing_banner_removes_previous(self, client, db_session, headers_a, commerce_a, media_host):
        commerce_a.banner_url = "https://res.cloudinary.com/demo/image/upload/v1/commerces-banners/old_banner.jpg"
        db_session.commit()

        response = client.put(
            f'/api/commerces/{commerce_a.id}/update-banner',
            data=self._image("banner.jpg"),
            headers=headers_a,
            content_type='multipart/form-data',
        )

        assert response.status_code == 200
        assert media_host.deleted == ["commerces-banners/old_banner"]

    def test_failed_cleanup_does_not_fail_request(self, client, db_session, headers_a, commerce_a, media_host):
        commerce_a.logo_url = "https://res.cloudinary.com/demo/image/upload/v1/commerces-logos/old.png"
        db_session.commit()
        media_host.fail_deletes = True

        response = client.put(
            f'/api/commerces/{commerce_a.id}/update-logo',
            data=self._image(),
            headers=headers_a,
            content_type='multipart/form-data',
        )

        assert response.status_code == 200
        assert "old.png" not in response.json["logo_url"]

    def test_failed_upload_is_500_and_keeps_old_url(self, client, db_session, headers_a, commerce_a, media_host):
        old_url = "https://res.cloudinary.com/demo/image/upload/v1/commerces-logos/old.png"
        commerce_a.logo_url = old_url
        db_session.commit()
        media_host.fail_uploads = True

        response = client.put(
            f'/api/commerces/{commerce_a.id}/update-logo',
            data=self._image(),
            headers=headers_a,
            content_type='multipart/form-data',
        )

        assert response.status_code == 500
        db_session.expire_all()
        assert db_session.get(Commerce, commerce_a.id).logo_url == old_url

    def test_rejects_non_image(self, client, headers_a, commerce_a, media_host):
        response = client.put(
            f'/api/commerces/{commerce_a.id}/update-logo',
            data={"image": (io.BytesIO(b"%PDF"), "menu.pdf", "application/pdf")},
            headers=headers_a,
            content_type='multipart/form-data',
        )

        assert response.status_code == 400
        assert media_host.uploads == []

    def test_rejects_oversized_image(self, client, app, headers_a, commerce_a, media_host):
        too_big = b"x" * (app.config["MAX_IMAGE_BYTES"] + 1)
        response = client.put(
            f'/api/commerces/{commerce_a.id}/update-logo',
            data=self._image(content=too_big),
            headers=headers_a,
            content_type='multipart/form-data',
        )

        assert response.status_code == 400

    def test_missing_image(self, client, headers_a, commerce_a, media_host):
        response = client.put(f'/api/commerces/{commerce_a.id}/update-logo', data={}, headers=headers_a)
        assert response.status_code == 400


class TestDeleteCommerce:

    def test_cascade_delete(self, client, db_session, superuser_headers, owner_a, catalog_a, catalog_b, media_host):
        commerce_id = catalog_a["commerce"].id
        large_id = catalog_a["large"].id

        response = client.delete(f'/api/commerces/{commerce_id}', headers=superuser_headers)

        assert response.status_code == 200
        assert response.json["users_deleted"] == 1
        assert db_session.get(Commerce, commerce_id) is None
        assert db_session.query(User).filter_by(commerce_id=commerce_id).count() == 0
        assert db_session.query(Category).filter_by(commerce_id=commerce_id).count() == 0
        assert db_session.query(Product).filter_by(commerce_id=commerce_id).count() == 0
        assert db_session.query(Tag).filter_by(commerce_id=commerce_id).count() == 0
        assert db_session.get(OptionItem, large_id) is None
        assert db_session.execute(item_tags.select().where(item_tags.c.item_id == large_id)).fetchall() == []

        # Commerce B untouched
        assert db_session.query(Product).filter_by(commerce_id=catalog_b["commerce"].id).count() == 1
        assert media_host.deleted == ["products-images/product_1_margherita"]

    def test_media_failure_is_swallowed(self, client, db_session, superuser_headers, catalog_a, media_host):
        commerce_id = catalog_a["commerce"].id
        media_host.fail_deletes = True

        response = client.delete(f'/api/commerces/{commerce_id}', headers=superuser_headers)

        assert response.status_code == 200
        assert response.json["media_removed"] == 0
        assert db_session.get(Commerce, commerce_id) is None

    def test_owner_cannot_delete(self, client, db_session, headers_a, commerce_a):
        response = client.delete(f'/api/commerces/{commerce_a.id}', headers=headers_a)

        assert response.status_code == 403
        assert db_session.get(Commerce, commerce_a.id) is not None

    def test_deleted_commerce_menu_is_gone(self, client, superuser_headers, catalog_a, media_host):
        client.delete(f'/api/commerces/{catalog_a["commerce"].id}', headers=superuser_headers)

        assert client.get('/api/public/pizzanova').status_code == 404
