"""PostgreSQL-backed process store with automatic table migration.

Workflow state is persisted as SpiffWorkflow's JSON serialization; the script
engine is re-attached by the engine after loading.
"""

from __future__ import annotations

import threading
from datetime import date
from typing import Any

from onboarding_console.engine.models import (
    Deployment,
    HistoricActivityInstance,
    ProcessDefinition,
    ProcessInstance,
)


class PostgresProcessStore:
    """Persist deployments, instances and activity history in PostgreSQL."""

    def __init__(self, database_url: str, username: str = "", password: str = "") -> None:
        if not database_url:
            raise ValueError("ONBOARDING_DB_URL is required")
        self.database_url = database_url
        self.username = username
        self.password = password
        self._lock = threading.Lock()
        self._psycopg, self._dict_row, self._json_wrapper = self._load_psycopg()
        self._serializer = self._build_serializer()

    def migrate(self) -> None:
        with self._lock, self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS deployments (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    deployed_at TIMESTAMPTZ NOT NULL,
                    resource_names JSONB NOT NULL DEFAULT '[]'::jsonb
                )
                """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS deployment_resources (
                    deployment_id TEXT NOT NULL REFERENCES deployments(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    content BYTEA NOT NULL,
                    PRIMARY KEY (deployment_id, name)
                )
                """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS process_definitions (
                    id TEXT PRIMARY KEY,
                    key TEXT NOT NULL,
                    name TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    deployment_id TEXT NOT NULL REFERENCES deployments(id) ON DELETE CASCADE,
                    resource_name TEXT NOT NULL
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_process_definitions_key
                ON process_definitions(key, version DESC)
                """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS process_instances (
                    id TEXT PRIMARY KEY,
                    process_definition_id TEXT NOT NULL REFERENCES process_definitions(id),
                    process_definition_key TEXT NOT NULL,
                    business_key TEXT,
                    ended BOOLEAN NOT NULL DEFAULT FALSE,
                    started_at TIMESTAMPTZ NOT NULL,
                    ended_at TIMESTAMPTZ,
                    state_json TEXT NOT NULL
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_process_instances_ended
                ON process_instances(ended)
                """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS historic_activities (
                    seq BIGSERIAL,
                    id TEXT PRIMARY KEY,
                    activity_id TEXT NOT NULL,
                    activity_name TEXT,
                    activity_type TEXT NOT NULL,
                    process_instance_id TEXT NOT NULL
                        REFERENCES process_instances(id) ON DELETE CASCADE,
                    start_time TIMESTAMPTZ NOT NULL,
                    end_time TIMESTAMPTZ
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_historic_activities_instance
                ON historic_activities(process_instance_id, seq)
                """)
            conn.commit()

    def save_deployment(self, deployment: Deployment, resources: dict[str, bytes]) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO deployments (id, name, deployed_at, resource_names)
                VALUES (%s, %s, %s, %s)
                """,
                (
                    deployment.id,
                    deployment.name,
                    deployment.deployed_at,
                    self._json_wrapper(deployment.resource_names),
                ),
            )
            for name, content in resources.items():
                conn.execute(
                    """
                    INSERT INTO deployment_resources (deployment_id, name, content)
                    VALUES (%s, %s, %s)
                    """,
                    (deployment.id, name, content),
                )
            conn.commit()

    def get_resource(self, deployment_id: str, resource_name: str) -> bytes | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                """
                SELECT content FROM deployment_resources
                WHERE deployment_id = %s AND name = %s
                """,
                (deployment_id, resource_name),
            ).fetchone()
        if row is None:
            return None
        return bytes(row["content"])

    def save_process_definition(self, definition: ProcessDefinition) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO process_definitions
                    (id, key, name, version, deployment_id, resource_name)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO NOTHING
                """,
                (
                    definition.id,
                    definition.key,
                    definition.name,
                    definition.version,
                    definition.deployment_id,
                    definition.resource_name,
                ),
            )
            conn.commit()

    def list_process_definitions(
        self, *, key: str | None = None, deployment_id: str | None = None
    ) -> list[ProcessDefinition]:
        clauses: list[str] = []
        params: list[Any] = []
        if key is not None:
            clauses.append("key = %s")
            params.append(key)
        if deployment_id is not None:
            clauses.append("deployment_id = %s")
            params.append(deployment_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM process_definitions {where} ORDER BY version",
                params,
            ).fetchall()
        return [ProcessDefinition.model_validate(dict(row)) for row in rows]

    def save_instance(self, instance: ProcessInstance, workflow: Any) -> None:
        state_json = self._serializer.serialize_json(workflow)
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO process_instances (
                    id, process_definition_id, process_definition_key, business_key,
                    ended, started_at, ended_at, state_json
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    ended = EXCLUDED.ended,
                    ended_at = EXCLUDED.ended_at,
                    state_json = EXCLUDED.state_json
                """,
                (
                    instance.id,
                    instance.process_definition_id,
                    instance.process_definition_key,
                    instance.business_key,
                    instance.ended,
                    instance.started_at,
                    instance.ended_at,
                    state_json,
                ),
            )
            conn.commit()

    def get_instance(self, instance_id: str) -> ProcessInstance | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, process_definition_id, process_definition_key, business_key,
                       ended, started_at, ended_at
                FROM process_instances WHERE id = %s
                """,
                (instance_id,),
            ).fetchone()
        if row is None:
            return None
        return ProcessInstance.model_validate(dict(row))

    def load_workflow(self, instance_id: str) -> Any | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                "SELECT state_json FROM process_instances WHERE id = %s",
                (instance_id,),
            ).fetchone()
        if row is None:
            return None
        return self._serializer.deserialize_json(row["state_json"])

    def list_active_instances(self) -> list[ProcessInstance]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, process_definition_id, process_definition_key, business_key,
                       ended, started_at, ended_at
                FROM process_instances WHERE NOT ended ORDER BY started_at
                """
            ).fetchall()
        return [ProcessInstance.model_validate(dict(row)) for row in rows]

    def save_activity(self, activity: HistoricActivityInstance) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO historic_activities (
                    id, activity_id, activity_name, activity_type,
                    process_instance_id, start_time, end_time
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET end_time = EXCLUDED.end_time
                """,
                (
                    activity.id,
                    activity.activity_id,
                    activity.activity_name,
                    activity.activity_type,
                    activity.process_instance_id,
                    activity.start_time,
                    activity.end_time,
                ),
            )
            conn.commit()

    def list_activities(self, instance_id: str) -> list[HistoricActivityInstance]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, activity_id, activity_name, activity_type,
                       process_instance_id, start_time, end_time
                FROM historic_activities
                WHERE process_instance_id = %s
                ORDER BY seq
                """,
                (instance_id,),
            ).fetchall()
        return [HistoricActivityInstance.model_validate(dict(row)) for row in rows]

    def close(self) -> None:
        return None

    def _connect(self) -> Any:
        kwargs: dict[str, Any] = {"row_factory": self._dict_row}
        if self.username:
            kwargs["user"] = self.username
        if self.password:
            kwargs["password"] = self.password
        return self._psycopg.connect(self.database_url, **kwargs)

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any]:
        try:
            import psycopg
            from psycopg.rows import dict_row
            from psycopg.types.json import Json
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "PostgreSQL storage requires psycopg. "
                'Install with: python -m pip install "psycopg[binary]>=3.2,<4.0"'
            ) from exc
        return psycopg, dict_row, Json

    @staticmethod
    def _build_serializer() -> Any:
        from SpiffWorkflow.bpmn.serializer import BpmnWorkflowSerializer

        registry = BpmnWorkflowSerializer.configure()
        # Date form fields are plain dates; the default registry only knows datetimes.
        registry.register(
            date,
            lambda value: {"value": value.isoformat()},
            lambda dct: date.fromisoformat(dct["value"]),
        )
        return BpmnWorkflowSerializer(registry)
