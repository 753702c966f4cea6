"""Fehlertypen fuer n8nClient."""


class N8nApiError(Exception):
    """HTTP-Antwort ausserhalb 2xx. Keine Unterscheidung nach Statuscode."""

    def __init__(self, status_code: int, status_text: str, body: str = ""):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"n8n API Fehler {status_code} {status_text}: {body}")


class ConfigError(Exception):
    """Kein n8n-Server konfiguriert oder Konfiguration ungueltig."""
