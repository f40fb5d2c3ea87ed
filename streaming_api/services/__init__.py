"""Services package initialization"""
from .ladder_planner import plan
from .workspace import WorkspaceManager, get_workspace_manager
from .command_builder import EncodeConfig, EncodeInvocation, EncodeCommandBuilder
from .encode_supervisor import EncodeSupervisor, get_encode_supervisor
from .artifact_server import Artifact, ArtifactServer, get_artifact_server
from .pipeline import TranscodePipeline, get_pipeline

__all__ = [
    "plan",
    "WorkspaceManager",
    "get_workspace_manager",
    "EncodeConfig",
    "EncodeInvocation",
    "EncodeCommandBuilder",
    "EncodeSupervisor",
    "get_encode_supervisor",
    "Artifact",
    "ArtifactServer",
    "get_artifact_server",
    "TranscodePipeline",
    "get_pipeline"
]
