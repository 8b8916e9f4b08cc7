"""Persona export: details plus AI chat transcript as JSON."""

import json
from datetime import datetime, timezone
from pathlib import Path

from web.conversation_store import get_chat_messages
from web.persona_store import get_persona, list_personas


class PersonaExporter:
    """Export a user's personas with their AI chat history."""

    def __init__(self, user_id: str, db_path: Path | None = None):
        self.user_id = user_id
        self.db_path = db_path

    def export_persona(self, persona_id: str) -> dict | None:
        """Export payload for one persona, None if it doesn't exist for this user."""
        persona = get_persona(self.user_id, persona_id, db_path=self.db_path)
        if not persona:
            return None
        return {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "persona_details": persona,
            "chat_messages_with_ai": get_chat_messages(persona_id, limit=None, db_path=self.db_path),
        }

    def export_all(self) -> dict:
        personas = list_personas(self.user_id, db_path=self.db_path)
        return {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "count": len(personas),
            "personas": [
                {
                    "persona_details": p,
                    "chat_messages_with_ai": get_chat_messages(
                        p["id"], limit=None, db_path=self.db_path
                    ),
                }
                for p in personas
            ],
        }

    def export_json(self, output_path: Path, persona_id: str | None = None) -> int:
        """Write one persona (or all) to a JSON file.

        Returns:
            Number of personas exported
        """
        if persona_id:
            data = self.export_persona(persona_id)
            count = 1 if data else 0
        else:
            data = self.export_all()
            count = data["count"]
        if not count:
            return 0

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(data, f, indent=2, default=str)
        return count
