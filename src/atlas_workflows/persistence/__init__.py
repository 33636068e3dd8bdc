from .workflow_store import WorkflowArtifactMeta, load_workflow, save_workflow

__all__ = ["save_workflow", "load_workflow", "WorkflowArtifactMeta"]
