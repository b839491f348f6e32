"""Reading process definition metadata from BPMN documents.

SpiffWorkflow interprets the process graph; this module only extracts what the
engine services expose on top of it: element names and types for the history,
candidate groups for task queries and form properties for task forms. Both the
Activiti (`activiti:formProperty`) and Camunda (`camunda:formField`) extension
dialects are understood.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lxml import etree

from onboarding_console.engine.errors import DeploymentError
from onboarding_console.engine.models import USER_TASK, FormField

BPMN_NS = "http://www.omg.org/spec/BPMN/20100524/MODEL"
ACTIVITI_NS = "http://activiti.org/bpmn"
CAMUNDA_NS = "http://camunda.org/schema/1.0/bpmn"

# Child elements of <process> that are not flow nodes.
_NON_NODE_TAGS = frozenset(
    {
        "sequenceFlow",
        "laneSet",
        "documentation",
        "extensionElements",
        "dataObject",
        "dataObjectReference",
        "dataStoreReference",
        "ioSpecification",
        "textAnnotation",
        "association",
        "property",
    }
)


@dataclass(frozen=True, slots=True)
class FlowNode:
    id: str
    type: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class UserTaskDefinition:
    id: str
    name: str
    candidate_groups: tuple[str, ...] = ()
    form_fields: tuple[FormField, ...] = ()


@dataclass(slots=True)
class ProcessModel:
    """Metadata of one executable process in a BPMN document."""

    key: str
    name: str
    nodes: dict[str, FlowNode] = field(default_factory=dict)
    user_tasks: dict[str, UserTaskDefinition] = field(default_factory=dict)


def _local(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def _split_groups(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(g.strip() for g in value.split(",") if g.strip())


def _is_true(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _form_fields(element: etree._Element) -> tuple[FormField, ...]:
    fields: list[FormField] = []
    for prop in element.iter(f"{{{ACTIVITI_NS}}}formProperty"):
        fields.append(
            FormField(
                id=prop.get("id"),
                name=prop.get("name") or prop.get("id"),
                type=prop.get("type") or "string",
                required=_is_true(prop.get("required")),
            )
        )
    for form_field in element.iter(f"{{{CAMUNDA_NS}}}formField"):
        required = any(
            c.get("name") == "required"
            for c in form_field.iter(f"{{{CAMUNDA_NS}}}constraint")
        )
        fields.append(
            FormField(
                id=form_field.get("id"),
                name=form_field.get("label") or form_field.get("id"),
                type=form_field.get("type") or "string",
                required=required,
            )
        )
    return tuple(fields)


def _candidate_groups(element: etree._Element) -> tuple[str, ...]:
    return _split_groups(
        element.get(f"{{{ACTIVITI_NS}}}candidateGroups")
        or element.get(f"{{{CAMUNDA_NS}}}candidateGroups")
    )


def parse_process_models(content: bytes) -> list[ProcessModel]:
    """Parse every executable process of a BPMN document.

    Raises:
        DeploymentError: The document is not well formed or has no process.
    """
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as e:
        raise DeploymentError(f"Invalid BPMN document: {e}") from e

    models: list[ProcessModel] = []
    for process in root.iter(f"{{{BPMN_NS}}}process"):
        if process.get("isExecutable", "true").lower() == "false":
            continue
        key = process.get("id")
        if not key:
            raise DeploymentError("Process element without an id")
        model = ProcessModel(key=key, name=process.get("name") or key)
        for element in process:
            node_type = _local(element.tag)
            node_id = element.get("id")
            if not node_type or node_type in _NON_NODE_TAGS or not node_id:
                continue
            model.nodes[node_id] = FlowNode(id=node_id, type=node_type, name=element.get("name"))
            if node_type == USER_TASK:
                model.user_tasks[node_id] = UserTaskDefinition(
                    id=node_id,
                    name=element.get("name") or node_id,
                    candidate_groups=_candidate_groups(element),
                    form_fields=_form_fields(element),
                )
        models.append(model)

    if not models:
        raise DeploymentError("BPMN document contains no executable process")
    return models
