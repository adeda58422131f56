"""RemoteAPI capability and the in-memory backend."""

from ghprojects.api.base import RemoteAPI
from ghprojects.api.memory import InMemoryRemoteAPI, build_demo_api

__all__ = ["InMemoryRemoteAPI", "RemoteAPI", "build_demo_api"]
