"""
Read-only views of the Kubernetes resources the client knows how to deserialize.

Every resource is created through `from_json`, which validates the raw API document
against `res/kube_resources_schema.json` before any attribute is read. Fields the
schema doesn't mention are ignored, optional ones become `None`.
"""

import os
from datetime import datetime
from typing import Optional

from dateutil import parser

from kubeget.exceptions import DeserializationError
from kubeget.util import RES_DIR, load_schema, validate_schema


def _timestamp(value: Optional[str]):
    """
    Parse an RFC3339 timestamp. Dates without a time or times without an offset
    are rejected with a `ValueError`.
    """
    if not value:
        return None
    if "T" not in value.upper():
        raise ValueError(f"{value} has no time part")
    stamp = parser.isoparse(value)
    if stamp.tzinfo is None:
        raise ValueError(f"{value} has no UTC offset")
    return stamp


class KubeResource:
    """
    Base class for typed resources. The schema definition used for validation is
    the one named like the class.
    """

    __SCHEMA_PATH = os.path.join(RES_DIR, "kube_resources_schema.json")

    @classmethod
    def from_json(cls, data):
        schema = dict(
            load_schema(cls.__SCHEMA_PATH), **{"$ref": f"#/definitions/{cls.__name__}"}
        )
        validate_schema(data, schema, cls.__name__, DeserializationError)
        try:
            return cls(data)
        except (ValueError, OverflowError) as err:
            msg = "{kind} has an invalid value: {err}."
            raise DeserializationError(
                message=msg, kind=cls.__name__, err=str(err)
            ) from err

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class Metadata(KubeResource):
    name: str
    namespace: Optional[str]
    creation_timestamp: Optional[datetime]

    def __init__(self, data: dict):
        self.name = data["name"]
        self.namespace = data.get("namespace")
        self.creation_timestamp = _timestamp(data.get("creationTimestamp"))


# pods


class PodStatus(KubeResource):
    phase: str

    def __init__(self, data: dict):
        self.phase = data["phase"]


class Pod(KubeResource):
    metadata: Metadata
    status: PodStatus

    def __init__(self, data: dict):
        self.metadata = Metadata(data["metadata"])
        self.status = PodStatus(data["status"])


class PodList(KubeResource):
    items: list

    def __init__(self, data: dict):
        self.items = [Pod(item) for item in data["items"]]


# events


class Event(KubeResource):
    count: int
    message: str
    reason: str
    last_timestamp: datetime

    def __init__(self, data: dict):
        self.count = data["count"]
        self.message = data["message"]
        self.reason = data["reason"]
        self.last_timestamp = _timestamp(data["lastTimestamp"])


class EventList(KubeResource):
    items: list

    def __init__(self, data: dict):
        self.items = [Event(item) for item in data["items"]]


# nodes


class NodeCondition(KubeResource):
    type_: str
    status: str

    def __init__(self, data: dict):
        self.type_ = data["type"]
        self.status = data["status"]


class NodeStatus(KubeResource):
    conditions: list

    def __init__(self, data: dict):
        self.conditions = [NodeCondition(c) for c in data["conditions"]]


class NodeSpec(KubeResource):
    unschedulable: Optional[bool]

    def __init__(self, data: dict):
        self.unschedulable = data.get("unschedulable")


class Node(KubeResource):
    metadata: Metadata
    spec: NodeSpec
    status: NodeStatus

    def __init__(self, data: dict):
        self.metadata = Metadata(data["metadata"])
        self.spec = NodeSpec(data["spec"])
        self.status = NodeStatus(data["status"])


class NodeList(KubeResource):
    items: list

    def __init__(self, data: dict):
        self.items = [Node(item) for item in data["items"]]
