"""Persistence layer for named CCA scenarios.

Scenarios are saved configurations that a user can reload later. They are
kept in a database through SQLAlchemy. SQLite is the default for local use,
but any SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL) is accepted.
Only configurations are stored; results are recomputed on load.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, func, select
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///cca_scenarios.sqlite3"


class ScenarioModel(Base):
    __tablename__ = "cca_scenarios"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    config_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    # Per-user insertion counter; orders scenarios saved within one clock tick.
    seq = Column(Integer, nullable=False, default=0)


class ScenarioStore:
    """Database-backed scenario store, partitioned by user token."""

    def __init__(self, url: str, *, max_per_user: int = 20) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_scenarios(self, user_token: str) -> List[Dict[str, Any]]:
        """Return the user's scenarios, most recent first."""
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[ScenarioModel] = session.execute(
                select(ScenarioModel)
                .where(ScenarioModel.user_token == user_token)
                .order_by(ScenarioModel.created_at.desc(), ScenarioModel.seq.desc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def get_scenario(self, user_token: str, scenario_id: str) -> Optional[Dict[str, Any]]:
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.get(ScenarioModel, scenario_id)
            if row is None or row.user_token != user_token:
                return None
            return self._to_dict(row)

    def add_scenario(self, user_token: str, scenario_id: str, name: str, config: dict) -> None:
        if not user_token:
            return
        payload = ScenarioModel(
            id=scenario_id,
            user_token=user_token,
            name=name,
            config_json=json.dumps(config),
        )
        with self._session_factory() as session:
            last_seq = session.execute(
                select(func.max(ScenarioModel.seq)).where(ScenarioModel.user_token == user_token)
            ).scalar()
            payload.seq = (last_seq or 0) + 1
            session.add(payload)
            session.commit()
        logger.info("Saved scenario %s (%s)", scenario_id, name)
        self._trim_user(user_token)

    def remove_scenario(self, user_token: str, scenario_id: str) -> bool:
        if not user_token:
            return False
        with self._session_factory() as session:
            row = session.get(ScenarioModel, scenario_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()
                logger.info("Removed scenario %s", scenario_id)
                return True
        return False

    def clear_scenarios(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                ScenarioModel.__table__.delete().where(ScenarioModel.user_token == user_token)
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(ScenarioModel)
                .where(ScenarioModel.user_token == user_token)
                .order_by(ScenarioModel.created_at.desc(), ScenarioModel.seq.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()
            logger.info("Trimmed %d old scenarios", len(rows) - self._max_per_user)

    @staticmethod
    def _to_dict(row: ScenarioModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "config": json.loads(row.config_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: str | None, max_per_user: str | None = None) -> ScenarioStore:
    limit = int(max_per_user) if max_per_user else 20
    return ScenarioStore(url or DEFAULT_DATABASE_URL, max_per_user=limit)
