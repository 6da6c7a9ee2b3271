"""REST API client for the grammaire server."""

import requests


class GrammarAPIClient:
    """Client for communicating with the grammaire REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "default"):
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        if params is None:
            params = {}
        params['user_id'] = self.user_id
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict) -> dict:
        """Make a POST request."""
        data['user_id'] = self.user_id
        response = self.session.post(f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        response = self.session.get(f"{self.base_url}/")
        response.raise_for_status()
        return response.json()

    def analyze(self, original: str, corrected: str, issue: str = None) -> dict:
        """Classify one correction and get a quiz for it."""
        correction = {'example': original, 'suggestion': corrected}
        if issue:
            correction['issue'] = issue
        return self._post("/api/analyze", {'corrections': [correction]})

    def get_quiz(self, rule_id: str, mixed: bool = False) -> dict:
        return self._post("/api/quiz", {'rule_id': rule_id, 'mixed': mixed})

    def submit_answer(self, question_id: str, answer: str) -> dict:
        """Submit an answer to an issued question."""
        return self._post("/api/answer", {
            'question_id': question_id,
            'answer': answer
        })

    def get_hint(self, question_id: str) -> dict:
        return self._get(f"/api/questions/{question_id}/hint")

    def get_stats(self) -> dict:
        """Get account level, streak and accuracy."""
        return self._get("/api/stats")

    def get_progress(self) -> dict:
        """Get the full progress summary with recommendations."""
        return self._get("/api/progress")

    def get_weak_rules(self, limit: int = 5) -> dict:
        """Get rules that need more practice."""
        return self._get("/api/weak-rules", {'limit': limit})

    def get_history(self, query: str = None) -> dict:
        """Get saved analyses, newest first, optionally matching query."""
        return self._get("/api/history", {'q': query} if query else None)
