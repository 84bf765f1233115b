"""Ordering load test scenarios.

Two stateful SequentialTaskSet journeys: a shopper who browses, fills a cart
and checks out, and a crowd of shoppers competing for a few nearly sold-out
products. Stock refusals are the expected outcome of the second journey and
are not counted as failures.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cart_item_data, next_user_id, scarce_item_data, shipping_address
from loadtests.helpers.response import extract_error_detail, is_stock_refusal
from loadtests.helpers.state import ShopperState


class CheckoutJourney(SequentialTaskSet):
    """View Cart -> Add Items (x3) -> Remove One -> Place Order -> List Orders."""

    def on_start(self):
        self.state = ShopperState(user_id=next_user_id())

    def _add_item(self):
        with self.client.post(
            "/cart/items",
            json=cart_item_data(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/items",
        ) as resp:
            if resp.status_code == 200:
                self.state.line_ids = [line["line_id"] for line in resp.json()["lines"]]
            elif is_stock_refusal(resp):
                self.state.stock_refusals += 1
                resp.success()
            else:
                resp.failure(f"Add cart item failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def view_cart(self):
        with self.client.get("/cart", headers=self.state.headers, catch_response=True, name="GET /cart") as resp:
            if resp.status_code != 200:
                resp.failure(f"View cart failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_item_1(self):
        self._add_item()

    @task
    def add_item_2(self):
        self._add_item()

    @task
    def add_item_3(self):
        self._add_item()

    @task
    def remove_item(self):
        if len(self.state.line_ids) < 2:
            return
        line_id = self.state.line_ids[-1]
        with self.client.delete(
            f"/cart/items/{line_id}",
            headers=self.state.headers,
            catch_response=True,
            name="DELETE /cart/items/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.line_ids.remove(line_id)
            else:
                resp.failure(f"Remove cart item failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def place_order(self):
        if not self.state.line_ids:
            self.interrupt()
            return
        with self.client.post(
            "/orders",
            json=shipping_address(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order_id"])
                self.state.line_ids = []
            else:
                resp.failure(f"Place order failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def list_orders(self):
        with self.client.get(
            "/orders", headers=self.state.headers, catch_response=True, name="GET /orders"
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List orders failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ScarceStockJourney(SequentialTaskSet):
    """Add one unit of a scarce product -> Place Order if it was reserved.

    Run against products seeded with little stock. Once they are sold out,
    every add is refused with a 400; the database never goes below zero.
    """

    def on_start(self):
        self.state = ShopperState(user_id=next_user_id())

    @task
    def grab_unit(self):
        with self.client.post(
            "/cart/items",
            json=scarce_item_data(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/items [scarce]",
        ) as resp:
            if resp.status_code == 200:
                self.state.reserved_units += 1
            elif is_stock_refusal(resp):
                self.state.stock_refusals += 1
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Scarce add failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def check_out(self):
        with self.client.post(
            "/orders",
            json=shipping_address(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders [scarce]",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order_id"])
            else:
                resp.failure(f"Scarce checkout failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ShopperUser(HttpUser):
    tasks = [CheckoutJourney]
    wait_time = between(0.5, 2)


class ScarceStockUser(HttpUser):
    tasks = [ScarceStockJourney]
    wait_time = between(0.1, 0.5)
