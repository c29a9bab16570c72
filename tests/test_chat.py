import unittest
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from support_chat.app import create_app
from support_chat.chat_models import Order
from support_chat.fallback import BUCKETS, ORDER_PROMPT

from fakes import BrokenMessageLog, FakeOrderLookup, make_settings

GREETINGS = next(b.templates for b in BUCKETS if b.name == "greeting")


class TestChatAPI(unittest.TestCase):
    def setUp(self):
        self.lookup = FakeOrderLookup({
            "64b7f0c2a1d3e4f5a6b7c8d9": Order(
                id="64b7f0c2a1d3e4f5a6b7c8d9",
                status="shipped",
                payment_status="paid",
                total=3200,
                created_at=datetime(2026, 5, 1, tzinfo=timezone.utc),
            )
        })
        self.app = create_app(make_settings(), order_lookup=self.lookup)
        self.client = TestClient(self.app)

    def tearDown(self):
        self.client.close()
        self.app.state.engine.dispose()

    def _history(self, cid):
        r = self.client.get("/chat", params={"conversationId": cid})
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(data["conversationId"], cid)
        return data["conversation"]

    def test_greeting_persists_two_records(self):
        r = self.client.post("/chat", json={"message": "Hi there", "conversationId": "c1"})
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertIn(data["response"], GREETINGS)
        self.assertEqual(data["conversationId"], "c1")
        self.assertTrue(data["messageId"])
        history = self._history("c1")
        self.assertEqual([m["sender"] for m in history], ["user", "bot"])
        self.assertEqual(history[0]["message"], "Hi there")
        self.assertFalse(history[0]["isRead"])
        self.assertEqual(history[1]["message"], data["response"])
        self.assertEqual(history[1]["id"], data["messageId"])

    def test_unknown_order_message(self):
        r = self.client.post("/chat", json={"message": "order ORD-99999", "conversationId": "c1"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(
            r.json()["response"],
            'I couldn\'t find an order with ID "ord-99999". Please check your order number and try again.',
        )

    def test_known_order_status(self):
        r = self.client.post("/chat", json={"message": "order #64B7F0C2A1D3E4F5A6B7C8D9"})
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(data["source"], "order_status")
        self.assertIn("Total: PKR 3200", data["response"].split("\n"))
        self.assertIn("shipped", data["response"])

    def test_order_phrase_prompt(self):
        r = self.client.post("/chat", json={"message": "check order status"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["response"], ORDER_PROMPT)
        self.assertEqual(r.json()["conversationId"], "default")

    def test_seeded_keyword_rule_answers(self):
        r = self.client.post("/chat", json={"message": "What payment methods do you take?"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["source"], "keyword")
        self.assertIn("credit cards", r.json()["response"])

    def test_round_trip_in_insertion_order(self):
        for msg in ["Hello", "Do you sell rings?", "refund please"]:
            r = self.client.post("/chat", json={"message": msg, "conversationId": "rt"})
            self.assertEqual(r.status_code, 200)
        history = self._history("rt")
        self.assertEqual(len(history), 6)
        self.assertEqual([m["message"] for m in history[::2]], ["Hello", "Do you sell rings?", "refund please"])
        self.assertEqual([m["sender"] for m in history], ["user", "bot"] * 3)
        self.assertEqual(self._history("someone-else"), [])

    def test_default_conversation_history(self):
        self.client.post("/chat", json={"message": "hey"})
        r = self.client.get("/chat")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["conversationId"], "default")
        self.assertEqual(len(r.json()["conversation"]), 2)

    def test_missing_or_invalid_message_is_400(self):
        for body in [{}, {"message": 42}, {"message": ""}, {"conversationId": "c1"}]:
            r = self.client.post("/chat", json=body)
            self.assertEqual(r.status_code, 400, body)
            self.assertIn("detail", r.json())
        self.assertEqual(self._history("c1"), [])

    def test_health(self):
        self.client.post("/chat", json={"message": "hello", "conversationId": "h1"})
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertTrue(data["ok"])
        self.assertEqual(data["mirror_conversations"], 1)
        self.assertEqual(data["keyword_rules"], 8)


class TestChatAPIFailures(unittest.TestCase):
    def test_store_failure_is_500(self):
        app = create_app(make_settings(), order_lookup=FakeOrderLookup(), message_log=BrokenMessageLog())
        client = TestClient(app)
        r = client.post("/chat", json={"message": "hello"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json()["detail"], "Internal server error")
        r2 = client.get("/chat", params={"conversationId": "x"})
        self.assertEqual(r2.status_code, 500)
        app.state.engine.dispose()


if __name__ == "__main__":
    unittest.main()
