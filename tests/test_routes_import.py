import io

from db.models import AuditLog, InventoryMovement, Product, StagedImport
from factories import CategoryFactory, ProductFactory, UserFactory, csv_bytes

MOUSE_CSV = csv_bytes(
    "name,category,sale_price,stock,unit",
    "Mouse,Peripherals,9.99,10,unit",
    "Keyboard,Peripherals,19.99,0,unit",
)


def _upload(client, csrf, content=MOUSE_CSV, filename="products.csv",
            follow_redirects=False, **fields):
    data = {"csrf_token": csrf, "csv_file": (io.BytesIO(content), filename)}
    data.update(fields)
    return client.post("/products/import", data=data,
                       content_type="multipart/form-data",
                       follow_redirects=follow_redirects)


# ── Access ─────────────────────────────────────────────────────────────

def test_anonymous_user_is_sent_to_login(client):
    resp = client.get("/products/import")
    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]


def test_seller_is_forbidden(client, db_session):
    seller = UserFactory(role="seller")
    with client.session_transaction() as sess:
        sess["user_id"] = seller.id
        sess["role"] = seller.role
    assert client.get("/products/import").status_code == 403


def test_login_with_valid_credentials(client, db_session):
    UserFactory(username="boss", role="admin")
    client.get("/login")
    with client.session_transaction() as sess:
        token = sess["csrf_token"]
    resp = client.post("/login", data={
        "username": "boss", "password": "secret", "csrf_token": token,
    })
    assert resp.status_code == 302
    with client.session_transaction() as sess:
        assert sess["role"] == "admin"


def test_login_with_wrong_password(client, db_session):
    UserFactory(username="boss", role="admin")
    client.get("/login")
    with client.session_transaction() as sess:
        token = sess["csrf_token"]
    resp = client.post("/login", data={
        "username": "boss", "password": "nope", "csrf_token": token,
    })
    assert resp.status_code == 401


def test_post_without_csrf_token_is_rejected(admin_client, db_session):
    CategoryFactory(name="Peripherals")
    resp = _upload(admin_client, "wrong-token")
    assert resp.status_code == 400
    db_session.rollback()
    assert db_session.query(Product).count() == 0


# ── Upload form ────────────────────────────────────────────────────────

def test_form_lists_categories(admin_client, db_session):
    CategoryFactory(name="Peripherals")
    resp = admin_client.get("/products/import")
    assert resp.status_code == 200
    assert b"Peripherals" in resp.data


def test_form_warns_when_there_are_no_categories(admin_client):
    resp = admin_client.get("/products/import")
    assert b"No categories available" in resp.data


def test_template_download(admin_client):
    resp = admin_client.get("/products/import/template.csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    header = resp.data.decode().splitlines()[0]
    assert header.startswith("name,description,category,sku")


def test_wrong_extension_is_rejected(admin_client, csrf):
    resp = _upload(admin_client, csrf, filename="products.txt", follow_redirects=True)
    assert b".csv extension" in resp.data


# ── Preview flow ───────────────────────────────────────────────────────

def test_preview_then_confirm(admin_client, csrf, db_session, admin):
    CategoryFactory(name="Peripherals")

    resp = _upload(admin_client, csrf, preview_only="1")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/products/import/preview")

    db_session.rollback()
    assert db_session.query(Product).count() == 0
    assert db_session.query(StagedImport).count() == 1

    resp = admin_client.get("/products/import/preview")
    assert resp.status_code == 200
    assert b'id="count-new">2<' in resp.data
    assert b"Mouse" in resp.data

    resp = admin_client.post("/products/import/confirm", data={"csrf_token": csrf},
                             follow_redirects=True)
    assert b"Import completed: 2 products created" in resp.data

    db_session.rollback()
    assert db_session.query(Product).count() == 2
    assert db_session.query(StagedImport).count() == 0
    (movement,) = db_session.query(InventoryMovement).all()
    assert movement.quantity == 10
    assert movement.user_id == admin.id
    assert db_session.query(AuditLog).filter_by(action="product_import").count() == 1


def test_preview_shows_update_differences(admin_client, csrf, db_session):
    cat = CategoryFactory(name="Peripherals")
    ProductFactory(name="Mouse", category=cat, stock=3, unit="unit")
    _upload(admin_client, csrf, preview_only="1", duplicate_policy="update")

    resp = admin_client.get("/products/import/preview")
    assert b'id="count-update">1<' in resp.data
    assert "stock 3 → 10".encode() in resp.data


def test_confirm_twice_reports_missing_plan(admin_client, csrf, db_session):
    CategoryFactory(name="Peripherals")
    _upload(admin_client, csrf, preview_only="1")
    admin_client.post("/products/import/confirm", data={"csrf_token": csrf})

    resp = admin_client.post("/products/import/confirm", data={"csrf_token": csrf},
                             follow_redirects=True)
    assert b"There is no staged import to process" in resp.data
    db_session.rollback()
    assert db_session.query(Product).count() == 2


def test_discard_drops_the_plan(admin_client, csrf, db_session):
    CategoryFactory(name="Peripherals")
    _upload(admin_client, csrf, preview_only="1")

    resp = admin_client.post("/products/import/discard", data={"csrf_token": csrf},
                             follow_redirects=True)
    assert b"Staged import discarded" in resp.data

    db_session.rollback()
    assert db_session.query(StagedImport).count() == 0
    assert db_session.query(Product).count() == 0
    assert admin_client.get("/products/import/preview").status_code == 302


def test_preview_without_plan_redirects(admin_client):
    resp = admin_client.get("/products/import/preview")
    assert resp.status_code == 302


# ── Direct import ──────────────────────────────────────────────────────

def test_direct_import_commits_immediately(admin_client, csrf, db_session):
    CategoryFactory(name="Peripherals")
    resp = _upload(admin_client, csrf, follow_redirects=True)
    assert b"Import completed: 2 products created" in resp.data

    db_session.rollback()
    assert db_session.query(Product).count() == 2
    assert db_session.query(StagedImport).count() == 0


def test_inactive_initial_state(admin_client, csrf, db_session):
    CategoryFactory(name="Peripherals")
    _upload(admin_client, csrf, initial_active_state="0")
    db_session.rollback()
    assert [p.active for p in db_session.query(Product)] == [False, False]


def test_invalid_rows_abort_with_message(admin_client, csrf, db_session):
    CategoryFactory(name="Peripherals")
    content = csv_bytes("name,category,sale_price", "Mouse,Peripherals,abc")
    resp = _upload(admin_client, csrf, content=content, follow_redirects=True)
    assert b"Errors in the CSV file: Line 1" in resp.data
    db_session.rollback()
    assert db_session.query(Product).count() == 0


def test_missing_column_aborts(admin_client, csrf, db_session):
    content = csv_bytes("name,price", "Mouse,9.99")
    resp = _upload(admin_client, csrf, content=content, follow_redirects=True)
    assert b"must have a" in resp.data
    db_session.rollback()
    assert db_session.query(Product).count() == 0


# ── API ────────────────────────────────────────────────────────────────

def test_api_plan_requires_login(client):
    assert client.get("/api/v1/import/plan").status_code == 401


def test_api_plan_404_when_nothing_staged(admin_client):
    assert admin_client.get("/api/v1/import/plan").status_code == 404


def test_api_plan_returns_counts(admin_client, csrf, db_session):
    CategoryFactory(name="Peripherals")
    _upload(admin_client, csrf, preview_only="1")

    resp = admin_client.get("/api/v1/import/plan")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["counts"] == {"new": 2, "update": 0, "skipped": 0, "warnings": 0}
    assert [r["name"] for r in data["new"]] == ["Mouse", "Keyboard"]


def test_logout_clears_the_session(admin_client, csrf):
    resp = admin_client.post("/logout", data={"csrf_token": csrf})
    assert resp.status_code == 302
    assert admin_client.get("/products/import").status_code == 302
