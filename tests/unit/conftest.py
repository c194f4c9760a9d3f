"""Shared fixtures: an in-memory store and builders for cluster objects."""

import asyncio
import copy
import json

import pytest

from bootimage.common.models.category import Category
from bootimage.common.models.labels import Labels
from bootimage.resources.store import ResourceStore
from bootimage.types.settings import Settings
from bootimage.utils.errors import ConflictError, NotFoundError
from bootimage.utils.helpers import object_key

MAPI_NAMESPACE = "openshift-machine-api"
CAPI_NAMESPACE = "openshift-cluster-api"
MCO_NAMESPACE = "openshift-machine-config-operator"

GOLDEN_X86 = "ami-golden-x86"
GOLDEN_ARM = "ami-golden-arm"
OLD_AMI = "ami-old"


def merge(target: dict, patch: dict) -> dict:
    """Apply a JSON merge patch in place."""
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target


def mapi_machineset(
    name,
    ami=OLD_AMI,
    labels=None,
    annotations=None,
    kind="AWSMachineProviderConfig",
    resource_version="1",
):
    return {
        "apiVersion": "machine.openshift.io/v1beta1",
        "kind": "MachineSet",
        "metadata": {
            "name": name,
            "namespace": MAPI_NAMESPACE,
            "resourceVersion": resource_version,
            "labels": dict(labels or {}),
            "annotations": dict(annotations or {}),
        },
        "spec": {
            "replicas": 1,
            "template": {
                "spec": {
                    "providerSpec": {
                        "value": {
                            "kind": kind,
                            "apiVersion": "machine.openshift.io/v1beta1",
                            "ami": {"id": ami},
                            "instanceType": "m6i.xlarge",
                        }
                    }
                }
            },
        },
        "status": {"replicas": 1},
    }


def capi_resource(name, image=OLD_AMI, kind="MachineSet", labels=None, resource_version="1"):
    return {
        "apiVersion": "cluster.x-k8s.io/v1beta1",
        "kind": kind,
        "metadata": {
            "name": name,
            "namespace": CAPI_NAMESPACE,
            "resourceVersion": resource_version,
            "labels": dict(labels or {}),
        },
        "spec": {
            "clusterName": "cluster",
            "template": {
                "metadata": {"annotations": {Labels.BOOT_IMAGE_ANNOTATION: image}},
                "spec": {"clusterName": "cluster"},
            },
        },
    }


def golden_config_map(architectures=None, resource_version="10", release="4.18.0"):
    if architectures is None:
        architectures = {"x86_64": {"rhcos": GOLDEN_X86}, "aarch64": {"rhcos": GOLDEN_ARM}}
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": "coreos-bootimages",
            "namespace": MCO_NAMESPACE,
            "resourceVersion": resource_version,
        },
        "data": {
            "stream": json.dumps({"architectures": architectures}),
            "releaseVersion": release,
        },
    }


def manager(category=Category.MAPI_MACHINE_SET, mode="All", match_labels=None, match_expressions=None):
    selection = {"mode": mode}
    if mode == "Partial":
        selector = {}
        if match_labels is not None:
            selector["matchLabels"] = match_labels
        if match_expressions is not None:
            selector["matchExpressions"] = match_expressions
        selection["partial"] = {"machineResourceSelector": selector}
    return {"resource": category.plural, "apiGroup": category.group, "selection": selection}


def machine_configuration(managers=None, conditions=None, resource_version="100"):
    if managers is None:
        managers = [manager()]
    status = {
        "observedGeneration": 3,
        "managedBootImagesStatus": {"machineManagers": managers},
    }
    if conditions is not None:
        status["conditions"] = conditions
    return {
        "apiVersion": "operator.openshift.io/v1",
        "kind": "MachineConfiguration",
        "metadata": {"name": "cluster", "resourceVersion": resource_version},
        "spec": {"managementState": "Managed"},
        "status": status,
    }


class FakeStore(ResourceStore):
    """In-memory ResourceStore recording every write."""

    def __init__(self, resources=(), config_map=None, machine_configuration=None):
        self.objects = {category: {} for category in Category}
        self.config_map = config_map
        self.machine_configuration = machine_configuration
        self.is_synced = True
        self.patches = []
        self.status_updates = []
        self.fresh_reads = 0
        self.list_calls = 0
        #: name -> exception raised when patching that resource
        self.patch_errors = {}
        #: names whose patches are accepted but immediately reverted
        self.reverting = set()
        #: number of status writes answered with a conflict
        self.status_conflicts = 0
        self.status_error = None
        for category, body in resources:
            self.add(category, body)

    def add(self, category, body):
        self.objects[category][object_key(body)] = copy.deepcopy(body)

    def remove(self, category, name, namespace=None):
        namespace = namespace or (CAPI_NAMESPACE if category.is_capi else MAPI_NAMESPACE)
        self.objects[category].pop((namespace, name), None)

    def body(self, category, name):
        for (_, n), body in self.objects[category].items():
            if n == name:
                return copy.deepcopy(body)
        return None

    def _bump(self, body):
        meta = body["metadata"]
        meta["resourceVersion"] = str(int(meta.get("resourceVersion") or 0) + 1)

    def synced(self):
        return self.is_synced

    async def wait_synced(self):
        while not self.is_synced:
            await asyncio.sleep(0)

    async def list(self, category):
        self.list_calls += 1
        return [copy.deepcopy(b) for _, b in sorted(self.objects[category].items())]

    async def get_config_map(self, name):
        if self.config_map is None or self.config_map["metadata"]["name"] != name:
            return None
        return copy.deepcopy(self.config_map)

    async def get_machine_configuration(self, fresh=False):
        if fresh:
            self.fresh_reads += 1
        return copy.deepcopy(self.machine_configuration)

    async def patch(self, category, body, patch):
        namespace, name = object_key(body)
        self.patches.append((category, name, copy.deepcopy(patch)))
        if name in self.patch_errors:
            raise self.patch_errors[name]
        stored = self.objects[category].get((namespace, name))
        if stored is None:
            raise NotFoundError(f"{name} not found", status=404)
        if stored["metadata"]["resourceVersion"] != body["metadata"]["resourceVersion"]:
            raise ConflictError(f"{name} was modified", status=409)
        if name not in self.reverting:
            merge(stored, patch)
        self._bump(stored)
        return copy.deepcopy(stored)

    async def update_machine_configuration_status(self, body):
        if self.status_error is not None:
            raise self.status_error
        if self.status_conflicts > 0:
            self.status_conflicts -= 1
            # somebody else wrote the object in between
            self._bump(self.machine_configuration)
            raise ConflictError("the object has been modified", status=409)
        stored = self.machine_configuration
        if stored["metadata"]["resourceVersion"] != body["metadata"]["resourceVersion"]:
            raise ConflictError("the object has been modified", status=409)
        stored["status"] = copy.deepcopy(body["status"])
        self._bump(stored)
        self.status_updates.append(copy.deepcopy(body["status"]))
        return copy.deepcopy(stored)

    def conditions(self):
        status = self.machine_configuration.get("status") or {}
        return {c["type"]: c for c in status.get("conditions") or []}


async def no_sleep(delay):
    pass


class Clock:
    """Deterministic timestamps: t1, t2, ..."""

    def __init__(self):
        self.ticks = 0

    def __call__(self):
        self.ticks += 1
        return f"t{self.ticks}"


@pytest.fixture
def settings():
    return Settings(capi_enabled=False)


@pytest.fixture
def capi_settings():
    return Settings(capi_enabled=True)


@pytest.fixture
def store():
    return FakeStore(
        config_map=golden_config_map(),
        machine_configuration=machine_configuration(),
    )
