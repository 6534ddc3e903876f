from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APITestCase

from api.models import Category, Product

from .helpers import make_category, make_product


class ProductSignalTestCase(TestCase):

    def test_sold_out_product_becomes_unavailable(self):
        product = make_product(quantity=3)
        self.assertTrue(product.availability)

        product.quantity = 0
        product.save()

        product.refresh_from_db()
        self.assertFalse(product.availability)
        self.assertFalse(product.in_stock)

    def test_restocking_does_not_reenable(self):
        product = make_product(quantity=0)
        self.assertFalse(product.availability)

        product.quantity = 4
        product.save()

        product.refresh_from_db()
        self.assertFalse(product.availability)


class ProductCrudTestCase(APITestCase):
    url = "/api/products/"

    def setUp(self):
        self.category = make_category()

    def payload(self, **overrides):
        data = {
            "name": "Runner",
            "brand": "Acme",
            "size": "42",
            "quantity": 7,
            "price": "15000.00",
            "description": "Light running shoe",
            "review": "4.5",
            "images": ["https://cdn.example.com/runner-1.jpg"],
            "tags": ["sport", "new"],
            "category_id": self.category.id,
        }
        data.update(overrides)
        return data

    def test_create_product(self):
        response = self.client.post(self.url, self.payload(), format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["category"], {"id": self.category.id, "name": "Shoes"})
        self.assertEqual(response.data["price"], "15000.00")
        self.assertEqual(response.data["tags"], ["sport", "new"])
        self.assertTrue(response.data["in_stock"])
        self.assertNotIn("category_id", response.data)

    def test_create_with_unknown_category(self):
        response = self.client.post(self.url, self.payload(category_id=9999), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("Category not found.", str(response.data["category_id"]))

    def test_create_with_too_many_images(self):
        images = [f"https://cdn.example.com/{i}.jpg" for i in range(5)]
        response = self.client.post(self.url, self.payload(images=images), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("Maximum 4 images allowed.", str(response.data["images"]))

    def test_create_with_negative_price(self):
        response = self.client.post(self.url, self.payload(price="-1.00"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("price", response.data)

    def test_create_with_review_out_of_range(self):
        response = self.client.post(self.url, self.payload(review="6"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("review", response.data)

    def test_partial_update(self):
        product = make_product(category=self.category)
        response = self.client.patch(f"{self.url}{product.id}/", {"price": "1999.99"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        product.refresh_from_db()
        self.assertEqual(product.price, Decimal("1999.99"))

    def test_delete(self):
        product = make_product()
        response = self.client.delete(f"{self.url}{product.id}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_retrieve_unknown_product(self):
        response = self.client.get(f"{self.url}999999/")
        self.assertEqual(response.status_code, 404)


class ProductQueryTestCase(APITestCase):
    url = "/api/products/"

    def setUp(self):
        self.shoes = make_category("Shoes")
        self.bags = make_category("Bags")
        self.runner = make_product("Runner", price="15000.00", brand="Acme", category=self.shoes, tags=["sport"])
        self.loafer = make_product("Loafer", price="30000.00", brand="Oxford", category=self.shoes, tags=["formal"])
        self.tote = make_product("Tote", price="8000.00", brand="Acme", category=self.bags,
                                 tags=["casual", "sport"], availability=False)

    def ids(self, response):
        return {p["id"] for p in response.data["results"]}

    def test_filter_by_price_range(self):
        response = self.client.get(self.url, {"min_price": "10000", "max_price": "20000"})
        self.assertEqual(self.ids(response), {self.runner.id})

    def test_filter_by_brand_is_case_insensitive(self):
        response = self.client.get(self.url, {"brand": "acme"})
        self.assertEqual(self.ids(response), {self.runner.id, self.tote.id})

    def test_filter_by_category(self):
        response = self.client.get(self.url, {"category": self.bags.id})
        self.assertEqual(self.ids(response), {self.tote.id})

    def test_filter_by_any_tag(self):
        response = self.client.get(self.url, {"tags": "formal,casual"})
        self.assertEqual(self.ids(response), {self.loafer.id, self.tote.id})

    def test_filter_by_availability(self):
        response = self.client.get(self.url, {"availability": "false"})
        self.assertEqual(self.ids(response), {self.tote.id})

    def test_ordering_by_price(self):
        response = self.client.get(self.url, {"ordering": "price"})
        self.assertEqual([p["name"] for p in response.data["results"]], ["Tote", "Runner", "Loafer"])

    def test_limit_controls_page_size(self):
        for i in range(12):
            make_product(f"Extra {i}")
        response = self.client.get(self.url, {"limit": 5, "page": 2})
        self.assertEqual(response.data["count"], 15)
        self.assertEqual(len(response.data["results"]), 5)

    def test_default_page_size(self):
        for i in range(12):
            make_product(f"Extra {i}")
        response = self.client.get(self.url)
        self.assertEqual(len(response.data["results"]), 10)
        self.assertIsNotNone(response.data["next"])

    def test_search_query(self):
        response = self.client.get(f"{self.url}search/query/", {"q": "oxf"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.ids(response), {self.loafer.id})

    def test_search_query_requires_term(self):
        response = self.client.get(f"{self.url}search/query/")
        self.assertEqual(response.status_code, 400)


class InventoryTestCase(APITestCase):

    def test_bulk_availability(self):
        a = make_product("A")
        b = make_product("B")
        c = make_product("C")

        response = self.client.put(
            "/api/products/bulk/availability/",
            {"product_ids": [a.id, b.id, 999999], "availability": False},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["updated_count"], 2)
        self.assertFalse(response.data["availability"])
        self.assertEqual(
            set(Product.objects.filter(availability=False).values_list("id", flat=True)),
            {a.id, b.id},
        )
        c.refresh_from_db()
        self.assertTrue(c.availability)

    def test_bulk_availability_requires_ids(self):
        response = self.client.put(
            "/api/products/bulk/availability/",
            {"product_ids": [], "availability": True},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Product IDs array cannot be empty.", str(response.data["product_ids"]))

    def test_set_quantity(self):
        product = make_product(quantity=3)
        response = self.client.put(f"/api/products/{product.id}/quantity/", {"quantity": 12}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data, {"id": product.id, "name": "Sneaker", "quantity": 12, "availability": True})

    def test_set_quantity_to_zero_disables_product(self):
        product = make_product(quantity=3)
        response = self.client.put(f"/api/products/{product.id}/quantity/", {"quantity": 0}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["availability"])
        product.refresh_from_db()
        self.assertFalse(product.availability)

    def test_negative_quantity_rejected(self):
        product = make_product(quantity=3)
        response = self.client.put(f"/api/products/{product.id}/quantity/", {"quantity": -1}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("Quantity cannot be negative.", str(response.data["quantity"]))

    def test_low_stock(self):
        low = make_product("Low", quantity=2)
        edge = make_product("Edge", quantity=5)
        make_product("Plenty", quantity=9)
        make_product("Gone", quantity=0)

        response = self.client.get("/api/products/inventory/low-stock/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 2)
        self.assertEqual([p["id"] for p in response.data["results"]], [low.id, edge.id])

    def test_low_stock_with_threshold(self):
        make_product("Low", quantity=2)
        make_product("Edge", quantity=5)
        response = self.client.get("/api/products/inventory/low-stock/", {"threshold": 3})
        self.assertEqual(response.data["count"], 1)

    def test_low_stock_rejects_bad_threshold(self):
        response = self.client.get("/api/products/inventory/low-stock/", {"threshold": "many"})
        self.assertEqual(response.status_code, 400)


class CategoryTestCase(APITestCase):
    url = "/api/categories/"

    def test_create_and_list_with_product_count(self):
        response = self.client.post(self.url, {"name": "Shoes", "sub_category": "Men"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        category = Category.objects.get(pk=response.data["id"])
        make_product("A", category=category)
        make_product("B", category=category)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["name"], "Shoes")
        self.assertEqual(response.data[0]["product_count"], 2)

    def test_duplicate_name_rejected(self):
        make_category("Shoes")
        response = self.client.post(self.url, {"name": "Shoes"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_invalid_status_rejected(self):
        response = self.client.post(self.url, {"name": "Hats", "status": "archived"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_update(self):
        category = make_category("Shoes")
        response = self.client.patch(f"{self.url}{category.id}/", {"status": "inactive"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["status"], "inactive")

    def test_delete_keeps_products(self):
        category = make_category("Shoes")
        product = make_product(category=category)
        response = self.client.delete(f"{self.url}{category.id}/")
        self.assertEqual(response.status_code, 204)
        product.refresh_from_db()
        self.assertIsNone(product.category)
