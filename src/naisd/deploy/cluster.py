"""Cluster clients applying objects with create-or-update semantics."""

from __future__ import annotations

import copy
import subprocess
import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple

import structlog
import yaml

from naisd.core.exceptions import ClusterError

logger = structlog.get_logger()


class ClusterClient(Protocol):
    """Create-or-update per object kind, keyed by namespace and name."""

    def create_or_update_deployment(self, namespace: str, manifest: Dict[str, Any]) -> None: ...

    def create_or_update_service(self, namespace: str, manifest: Dict[str, Any]) -> None: ...

    def create_or_update_ingress(self, namespace: str, manifest: Dict[str, Any]) -> None: ...

    def create_or_update_autoscaler(self, namespace: str, manifest: Dict[str, Any]) -> None: ...


class KubectlClusterClient:
    """Apply objects through ``kubectl apply``, which creates or patches in place."""

    def __init__(
        self,
        binary: str = "kubectl",
        context: Optional[str] = None,
        timeout: int = 30,
    ):
        self.binary = binary
        self.context = context
        self.timeout = timeout

    def _apply(self, namespace: str, manifest: Dict[str, Any]) -> None:
        kind = manifest.get("kind", "object")
        name = manifest.get("metadata", {}).get("name")
        cmd = [self.binary]
        if self.context:
            cmd += ["--context", self.context]
        cmd += ["apply", "-n", namespace, "-f", "-"]

        try:
            result = subprocess.run(
                cmd,
                input=yaml.safe_dump(manifest, sort_keys=False),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ClusterError(f"Timeout applying {kind} {name}")
        except FileNotFoundError:
            raise ClusterError(f"{self.binary} not found in PATH")

        if result.returncode != 0:
            raise ClusterError(f"Failed to apply {kind} {name}: {result.stderr.strip()}")

        logger.info("Applied object", kind=kind, name=name, namespace=namespace, output=result.stdout.strip())

    def create_or_update_deployment(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._apply(namespace, manifest)

    def create_or_update_service(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._apply(namespace, manifest)

    def create_or_update_ingress(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._apply(namespace, manifest)

    def create_or_update_autoscaler(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._apply(namespace, manifest)


class InMemoryClusterClient:
    """Keeps applied objects in a dict; used for dry runs and tests."""

    def __init__(self):
        self.objects: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.history: List[Tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def _store(self, kind: str, namespace: str, manifest: Dict[str, Any]) -> None:
        name = manifest["metadata"]["name"]
        key = (kind, namespace, name)
        with self._lock:
            self.objects[key] = copy.deepcopy(manifest)
            self.history.append(key)
        logger.debug("Stored object", kind=kind, name=name, namespace=namespace)

    def get(self, kind: str, namespace: str, name: str) -> Optional[Dict[str, Any]]:
        return self.objects.get((kind, namespace, name))

    def create_or_update_deployment(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._store("deployment", namespace, manifest)

    def create_or_update_service(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._store("service", namespace, manifest)

    def create_or_update_ingress(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._store("ingress", namespace, manifest)

    def create_or_update_autoscaler(self, namespace: str, manifest: Dict[str, Any]) -> None:
        self._store("autoscaler", namespace, manifest)
