import logging

from kubectl_pxc.model import ContainerInfo, Pod

logger = logging.getLogger(__name__)


class PodIndex:
    """
    Orchestrator pods of one snapshot, indexed by the claims they reference.

    The claim -> pods map is built once; every query preserves the input pod
    order and the container declaration order within a pod.
    """

    def __init__(self, pods: list[Pod]):
        self._pods = list(pods)
        self._by_claim: dict[str, list[Pod]] = {}
        for pod in self._pods:
            for claim in pod.claims:
                self._by_claim.setdefault(claim, []).append(pod)
        logger.debug(
            "Indexed %d pods referencing %d claims", len(self._pods), len(self._by_claim)
        )

    def __len__(self) -> int:
        return len(self._pods)

    def pods(self) -> list[Pod]:
        return list(self._pods)

    def pods_using_claim(self, claim_name: str, namespace: str | None = None) -> list[Pod]:
        pods = self._by_claim.get(claim_name, [])
        if namespace:
            return [p for p in pods if p.namespace == namespace]
        return list(pods)

    def containers_for_claim(
        self, claim_name: str, namespace: str | None = None
    ) -> list[ContainerInfo]:
        result: list[ContainerInfo] = []
        for pod in self.pods_using_claim(claim_name, namespace):
            for container in pod.containers:
                if claim_name in container.claims:
                    result.append(ContainerInfo(pod=pod, container=container.name))
        return result
