from .filesystem_repo import FileSystemDefinitionRepository

__all__ = ["FileSystemDefinitionRepository"]
