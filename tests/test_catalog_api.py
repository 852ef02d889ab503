from autohub.models import Brand, CATEGORY_PLACEHOLDER

from conftest import add_product, png


def stored(storage, url):
    return storage.exists(storage.key_for(url))


# ------
# Brands
# ------

def test_brand_crud(client, admin, storage):
    res = client.post("/api/brands", data={"name": "Nissan"}, files=[("thumbnail", png("logo.png"))], headers=admin)
    assert res.status_code == 201
    brand = res.json()["data"]
    assert brand["thumbnail"].startswith("/brands/")
    assert stored(storage, brand["thumbnail"])

    res = client.put(f"/api/brands/{brand['id']}", data={"name": "Nissan Motors"},
                     files=[("thumbnail", png("new-logo.png"))], headers=admin)
    updated = res.json()["data"]
    assert updated["name"] == "Nissan Motors"
    assert not stored(storage, brand["thumbnail"])
    assert stored(storage, updated["thumbnail"])

    listing = client.get("/api/brands").json()
    assert [b["name"] for b in listing["data"]] == ["Nissan Motors"]
    assert listing["pagination"] == {"page": 1, "limit": 1, "total": 1, "totalPages": 1}

    assert client.delete(f"/api/brands/{brand['id']}", headers=admin).status_code == 200
    assert not stored(storage, updated["thumbnail"])
    assert client.get(f"/api/brands/{brand['id']}").status_code == 404


def test_brand_requires_logo_and_name(client, admin):
    res = client.post("/api/brands", data={"name": "Mazda"}, headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "Brand logo is required"

    res = client.post("/api/brands", data={"name": ""}, files=[("thumbnail", png())], headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "name is required"


def test_brand_in_use_cannot_be_deleted(client, admin, db, category, brand):
    add_product(db, category, brand)
    res = client.delete(f"/api/brands/{brand.id}", headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "Brand is used by 1 product(s)"
    assert client.get(f"/api/brands/{brand.id}").status_code == 200


def test_brands_sort_by_name(client, db):
    db.add_all([Brand(name=n, thumbnail=f"/brands/{n}.png") for n in ("Subaru", "Audi", "Mazda")])
    db.commit()
    res = client.get("/api/brands", params={"sortBy": "name", "sortOrder": "asc"})
    assert [b["name"] for b in res.json()["data"]] == ["Audi", "Mazda", "Subaru"]


# ----------
# Categories
# ----------

def test_category_without_image_gets_placeholder(client, admin):
    res = client.post("/api/categories", data={"name": "Van"}, headers=admin)
    assert res.status_code == 201
    category = res.json()["data"]
    assert category["thumbnail"] == CATEGORY_PLACEHOLDER
    assert category["type"] == "product"


def test_category_image_replaces_placeholder(client, admin, storage):
    category = client.post("/api/categories", data={"name": "Van"}, headers=admin).json()["data"]
    res = client.put(f"/api/categories/{category['id']}", data={"type": "truck"},
                     files=[("thumbnail", png("van.png"))], headers=admin)
    updated = res.json()["data"]
    assert updated["type"] == "truck"
    assert updated["name"] == "Van"
    assert stored(storage, updated["thumbnail"])


def test_category_type_filter(client, admin):
    client.post("/api/categories", data={"name": "Sedan"}, headers=admin)
    client.post("/api/categories", data={"name": "Dump", "type": "truck"}, headers=admin)

    trucks = client.get("/api/categories", params={"type": "truck"}).json()["data"]
    assert [c["name"] for c in trucks] == ["Dump"]
    assert client.get("/api/categories").json()["pagination"]["total"] == 2


def test_category_type_must_be_known(client, admin):
    res = client.post("/api/categories", data={"name": "Boat", "type": "boat"}, headers=admin)
    assert res.status_code == 400
    assert client.get("/api/categories", params={"type": "boat"}).status_code == 400


def test_category_in_use_cannot_be_deleted(client, admin, db, category, brand):
    add_product(db, category, brand)
    res = client.delete(f"/api/categories/{category.id}", headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "Category is used by 1 product(s)"


def test_unused_category_delete(client, admin, category):
    assert client.delete(f"/api/categories/{category.id}", headers=admin).status_code == 200
    assert client.delete(f"/api/categories/{category.id}", headers=admin).status_code == 404


# -----
# Blogs
# -----

def blog_form(title="Shipping to Kenya"):
    return {"title": title, "description": "How export works", "content": "Long article body"}


def test_blog_requires_thumbnail(client, admin):
    res = client.post("/api/blogs", data=blog_form(), headers=admin)
    assert res.status_code == 400
    assert res.json()["message"] == "Thumbnail image is required"


def test_blog_crud(client, admin, storage):
    res = client.post("/api/blogs", data=blog_form(), files=[("thumbnail", png())], headers=admin)
    assert res.status_code == 201
    blog = res.json()["data"]

    res = client.put(f"/api/blogs/{blog['id']}", data=blog_form("Shipping to Tanzania"), headers=admin)
    updated = res.json()["data"]
    assert updated["title"] == "Shipping to Tanzania"
    assert updated["thumbnail"] == blog["thumbnail"]
    assert stored(storage, blog["thumbnail"])

    assert client.delete(f"/api/blogs/{blog['id']}", headers=admin).status_code == 200
    assert not stored(storage, blog["thumbnail"])


def test_blog_list_defaults_to_three_newest(client, admin):
    for i in range(4):
        client.post("/api/blogs", data=blog_form(f"Post {i}"), files=[("thumbnail", png())], headers=admin)

    body = client.get("/api/blogs").json()
    assert [b["title"] for b in body["data"]] == ["Post 3", "Post 2", "Post 1"]
    assert body["pagination"] == {"page": 1, "limit": 3, "total": 4, "totalPages": 2}

    second = client.get("/api/blogs", params={"page": 2}).json()
    assert [b["title"] for b in second["data"]] == ["Post 0"]
