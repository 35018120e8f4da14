"""Cattle domain entity - generates events for cattle registry operations"""
from datetime import date, datetime
from typing import Dict, Any


class Cattle:
    @staticmethod
    def create(
        cattle_id: str,
        name: str,
        cattle_type: str,
        image: str = "",
    ) -> Dict[str, Any]:
        now = datetime.utcnow().isoformat()
        return {
            "cattle_id": cattle_id,
            "name": name,
            "type": cattle_type,
            "image": image,
            "next_injection": None,
            "created_at": now,
            "updated_at": now,
        }

    @staticmethod
    def update(cattle_id: str, **changes) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"cattle_id": cattle_id, "updated_at": datetime.utcnow().isoformat()}
        for key in ("name", "type", "image"):
            if key in changes:
                payload[key] = changes[key]
        return payload

    @staticmethod
    def set_next_injection(cattle_id: str, next_injection: date | None) -> Dict[str, Any]:
        return {
            "cattle_id": cattle_id,
            "next_injection": next_injection.isoformat() if next_injection else None,
        }

    @staticmethod
    def delete(cattle_id: str) -> Dict[str, Any]:
        return {
            "cattle_id": cattle_id,
            "deleted_at": datetime.utcnow().isoformat(),
        }
