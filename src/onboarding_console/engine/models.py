"""Engine models shared by the engine services and the process stores."""

from datetime import datetime

from pydantic import BaseModel, Field

START_EVENT = "startEvent"
END_EVENT = "endEvent"
USER_TASK = "userTask"


class Deployment(BaseModel):
    """A set of process definition resources deployed together."""

    id: str
    name: str
    deployed_at: datetime
    resource_names: list[str] = Field(default_factory=list)


class ProcessDefinition(BaseModel):
    """A deployed, versioned process template."""

    id: str
    key: str
    name: str
    version: int
    deployment_id: str
    resource_name: str


class ProcessInstance(BaseModel):
    """One execution of a process definition."""

    id: str
    process_definition_id: str
    process_definition_key: str
    business_key: str | None = None
    ended: bool = False
    started_at: datetime
    ended_at: datetime | None = None


class Task(BaseModel):
    """A human task waiting for completion."""

    id: str
    name: str
    task_definition_key: str
    process_instance_id: str
    candidate_groups: list[str] = Field(default_factory=list)
    created_at: datetime


class FormField(BaseModel):
    """A typed field of a task form.

    `type` is the declared type as written in the process definition; the
    console understands `string`, `long` and `date`.
    """

    id: str
    name: str
    type: str = "string"
    required: bool = False


class TaskFormData(BaseModel):
    """The ordered form schema of a task."""

    task_id: str
    fields: list[FormField] = Field(default_factory=list)


class HistoricActivityInstance(BaseModel):
    """A recorded step of a process instance."""

    id: str
    activity_id: str
    activity_name: str | None = None
    activity_type: str
    process_instance_id: str
    start_time: datetime
    end_time: datetime | None = None

    @property
    def finished(self) -> bool:
        return self.end_time is not None

    @property
    def duration_ms(self) -> int | None:
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() * 1000)
