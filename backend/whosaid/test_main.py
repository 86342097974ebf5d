from __future__ import annotations

from unittest import TestCase

from fastapi.testclient import TestClient

from .main import create_app
from .settings import Settings


class AppTests(TestCase):
    def setUp(self) -> None:  # noqa: D401 - standard unittest hook
        self.app = create_app(Settings(ROUND_DURATION_SEC=5, RESULTS_DELAY_SEC=1))

    def test_health_reports_room_snapshot(self):
        with TestClient(self.app) as client:
            res = client.get("/health")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"status": "healthy", "players": 0, "gameState": "lobby", "round": 0})

    def test_join_and_leave_over_websocket(self):
        with TestClient(self.app) as client:
            with client.websocket_connect("/ws") as ann:
                ann.send_text("this is not json")
                ann.send_json({"type": "join", "name": "Ann"})
                joined = ann.receive_json()
                self.assertEqual(joined["type"], "playerJoined")
                self.assertEqual(joined["player"]["name"], "Ann")
                self.assertTrue(joined["player"]["isHost"])
                ann_id = joined["player"]["id"]

                with client.websocket_connect("/") as bob:
                    bob.send_json({"type": "join", "name": "Bob"})
                    own = bob.receive_json()
                    self.assertFalse(own["player"]["isHost"])
                    self.assertEqual(set(own["players"]), {ann_id, own["player"]["id"]})

                    notice = ann.receive_json()
                    self.assertEqual(notice["type"], "playerJoined")
                    self.assertEqual(notice["player"]["name"], "Bob")
                    self.assertEqual(client.get("/health").json()["players"], 2)

                    bob.send_json({"type": "startGame"})
                    rejected = bob.receive_json()
                    self.assertEqual(rejected, {"type": "error", "message": "Only the host can start the game"})

                left = ann.receive_json()
                self.assertEqual(left["type"], "playerLeft")
                self.assertEqual(list(left["players"]), [ann_id])
                self.assertEqual(left["players"][ann_id], {"name": "Ann", "isHost": True, "ready": False})

    def test_questions_phase_over_websocket(self):
        with TestClient(self.app) as client:
            with client.websocket_connect("/ws") as ann:
                ann.send_json({"type": "join", "name": "Ann"})
                ann.receive_json()

                ann.send_json({"type": "startQuestions", "totalRounds": 3})
                started = ann.receive_json()

                self.assertEqual(started["type"], "questionsStarted")
                self.assertEqual(started["totalRounds"], 3)
                self.assertEqual(started["questions"][2]["type"], "youtube")
                self.assertEqual(client.get("/health").json()["gameState"], "collecting_answers")
