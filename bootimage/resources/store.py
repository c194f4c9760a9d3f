import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from kubernetes_asyncio.client import ApiException, CoreV1Api, CustomObjectsApi
from kubernetes_asyncio.client.api_client import ApiClient

from bootimage.common.models.category import Category
from bootimage.resources.cache import CONFIG_MAPS, MACHINE_CONFIGURATIONS, ObjectCache
from bootimage.types.settings import Settings
from bootimage.utils.errors import TRANSPORT_ERRORS, convert_api_exception, convert_transport_error
from bootimage.utils.helpers import get_path, object_key

logger = logging.getLogger(__name__)

MACHINE_CONFIGURATION_GROUP = "operator.openshift.io"
MACHINE_CONFIGURATION_VERSION = "v1"
MACHINE_CONFIGURATION_PLURAL = "machineconfigurations"

MERGE_PATCH = "application/merge-patch+json"


class ResourceStore:
    """Everything the controller reads from and writes to the cluster."""

    def synced(self) -> bool:
        raise NotImplementedError()

    async def wait_synced(self) -> None:
        raise NotImplementedError()

    async def list(self, category: Category) -> List[dict]:
        """Return every node-pool resource of ``category`` in scope."""
        raise NotImplementedError()

    async def get_config_map(self, name: str) -> Optional[dict]:
        raise NotImplementedError()

    async def get_machine_configuration(self, fresh: bool = False) -> Optional[dict]:
        """Return the feature configuration object, bypassing caches if ``fresh``."""
        raise NotImplementedError()

    async def patch(self, category: Category, body: Mapping, patch: Dict[str, Any]) -> dict:
        """Apply ``patch`` to ``body``, conditional on its resourceVersion.

        Raises ConflictError when the object changed since ``body`` was read.
        """
        raise NotImplementedError()

    async def update_machine_configuration_status(self, body: Mapping) -> dict:
        """Replace the status of the feature configuration object.

        Conditional on ``metadata.resourceVersion`` of ``body``.
        """
        raise NotImplementedError()


class KubernetesStore(ResourceStore):
    """Store backed by the Kubernetes API with reads served from a cache."""

    _custom_objects_api: CustomObjectsApi = None
    _core_v1_api: CoreV1Api = None

    def __init__(
        self,
        api_client: ApiClient,
        settings: Settings = None,
        cache: ObjectCache = None,
        categories: Iterable[Category] = None,
    ) -> None:
        self.api_client = api_client
        self.settings = settings or Settings()
        self.cache = cache or ObjectCache()
        self.categories = list(categories or [Category.MAPI_MACHINE_SET])

    @property
    def custom_objects_api(self) -> CustomObjectsApi:
        if self._custom_objects_api is None:
            self._custom_objects_api = CustomObjectsApi(self.api_client)
        return self._custom_objects_api

    @property
    def core_v1_api(self) -> CoreV1Api:
        if self._core_v1_api is None:
            self._core_v1_api = CoreV1Api(self.api_client)
        return self._core_v1_api

    async def prime(self) -> None:
        """List everything the controller reads and open the synced gate."""
        for category in self.categories:
            bodies = await self.list_machine_resources(category)
            self.cache.replace(category.cache_key, bodies)
            logger.info(f"Cached {len(bodies)} {category.display}")

        config_map = await self.fetch_config_map(self.settings.boot_images_config_map_name)
        self.cache.replace(CONFIG_MAPS, [config_map] if config_map else [])
        if config_map is None:
            logger.warning(
                f"ConfigMap {self.settings.mco_namespace}/"
                f"{self.settings.boot_images_config_map_name} not found"
            )

        machine_configuration = await self.fetch_machine_configuration()
        self.cache.replace(
            MACHINE_CONFIGURATIONS, [machine_configuration] if machine_configuration else []
        )
        self.cache.mark_synced()

    def synced(self) -> bool:
        return self.cache.synced()

    async def wait_synced(self) -> None:
        await self.cache.wait_synced()

    async def list(self, category: Category) -> List[dict]:
        return self.cache.list(category.cache_key, self.settings.namespace_for(category))

    async def get_config_map(self, name: str) -> Optional[dict]:
        return self.cache.get(CONFIG_MAPS, name, self.settings.mco_namespace)

    async def get_machine_configuration(self, fresh: bool = False) -> Optional[dict]:
        if fresh:
            body = await self.fetch_machine_configuration()
            if body is not None:
                self.cache.upsert(MACHINE_CONFIGURATIONS, body)
            return body
        return self.cache.get(MACHINE_CONFIGURATIONS, self.settings.machine_configuration_name)

    async def patch(self, category: Category, body: Mapping, patch: Dict[str, Any]) -> dict:
        namespace, name = object_key(body)
        patch = dict(patch)
        patch["metadata"] = {
            **(patch.get("metadata") or {}),
            "resourceVersion": get_path(body, "metadata", "resourceVersion"),
        }
        try:
            updated = await self.custom_objects_api.patch_namespaced_custom_object(
                group=category.group,
                version=category.version,
                namespace=namespace,
                plural=category.plural,
                name=name,
                body=patch,
                _content_type=MERGE_PATCH,
            )
        except ApiException as ex:
            raise convert_api_exception(ex)
        except TRANSPORT_ERRORS as ex:
            raise convert_transport_error(ex)
        self.cache.upsert(category.cache_key, updated)
        return updated

    async def update_machine_configuration_status(self, body: Mapping) -> dict:
        try:
            updated = await self.custom_objects_api.replace_cluster_custom_object_status(
                group=MACHINE_CONFIGURATION_GROUP,
                version=MACHINE_CONFIGURATION_VERSION,
                plural=MACHINE_CONFIGURATION_PLURAL,
                name=self.settings.machine_configuration_name,
                body=dict(body),
            )
        except ApiException as ex:
            raise convert_api_exception(ex)
        except TRANSPORT_ERRORS as ex:
            raise convert_transport_error(ex)
        self.cache.upsert(MACHINE_CONFIGURATIONS, updated)
        return updated

    async def list_machine_resources(self, category: Category) -> List[dict]:
        try:
            result = await self.custom_objects_api.list_namespaced_custom_object(
                group=category.group,
                version=category.version,
                namespace=self.settings.namespace_for(category),
                plural=category.plural,
            )
        except ApiException as ex:
            if ex.status == 404:
                # API not served on this cluster
                logger.warning(f"{category.display} are not served by this cluster")
                return []
            raise convert_api_exception(ex)
        except TRANSPORT_ERRORS as ex:
            raise convert_transport_error(ex)
        kind = result.get("kind", "").replace("List", "") or category.kind
        api_version = result.get("apiVersion") or f"{category.group}/{category.version}"
        items = result.get("items") or []
        for item in items:
            # List items come back without their type meta
            item.setdefault("kind", kind)
            item.setdefault("apiVersion", api_version)
        return items

    async def fetch_config_map(self, name: str) -> Optional[dict]:
        try:
            config_map = await self.core_v1_api.read_namespaced_config_map(
                name=name, namespace=self.settings.mco_namespace
            )
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise convert_api_exception(ex)
        except TRANSPORT_ERRORS as ex:
            raise convert_transport_error(ex)
        return self.api_client.sanitize_for_serialization(config_map)

    async def fetch_machine_configuration(self) -> Optional[dict]:
        try:
            return await self.custom_objects_api.get_cluster_custom_object(
                group=MACHINE_CONFIGURATION_GROUP,
                version=MACHINE_CONFIGURATION_VERSION,
                plural=MACHINE_CONFIGURATION_PLURAL,
                name=self.settings.machine_configuration_name,
            )
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise convert_api_exception(ex)
        except TRANSPORT_ERRORS as ex:
            raise convert_transport_error(ex)

