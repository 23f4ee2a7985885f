from typing import List, Optional


class Config:
    def __init__(
        self,
        project_root: str = ".",
        build_root: str = "build",
        builder: str = "make",
        build_configurations: Optional[List[str]] = None,
        **kwargs
    ):
        self.project_root = project_root
        self.build_root = build_root
        self.builder = builder
        self.build_configurations = list(build_configurations or [])
        self.__dict__.update(kwargs)
