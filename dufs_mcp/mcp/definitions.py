import copy
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

TOOLS_SCHEMAS: List[Dict[str, Any]] = [
    {
        "name": "dufs_upload",
        "description": "Upload a local file to the dufs file server. Uploads synchronously by default; with async=true the upload runs in the background and a job_id is returned immediately.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "local_path": {"type": "string", "description": "Path of the local file to upload."},
                "remote_path": {
                    "type": "string",
                    "description": "Remote destination path (optional). When omitted the path is built as <upload_dir, default uploads>/<YYYYMMDD>/<file name>, e.g. uploads/20251125/file.txt."
                },
                "async": {
                    "type": "boolean",
                    "default": False,
                    "description": "Upload in the background and return a job_id (default false)."
                }
            },
            "required": ["local_path"]
        }
    },
    {
        "name": "dufs_upload_batch",
        "description": "Upload several local files to the dufs file server. Runs in the background by default and returns a job_id immediately; with async=false every file is uploaded before the call returns.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "files": {
                    "type": "array",
                    "description": "Files to upload, in upload order.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "local_path": {"type": "string", "description": "Path of the local file."},
                            "remote_path": {"type": "string", "description": "Remote destination path (optional)."}
                        },
                        "required": ["local_path"]
                    }
                },
                "async": {
                    "type": "boolean",
                    "default": True,
                    "description": "Upload in the background and return a job_id (default true)."
                }
            },
            "required": ["files"]
        }
    },
    {
        "name": "dufs_upload_status",
        "description": "Get the status of a background upload job, including every file's progress.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "job_id": {"type": "string", "description": "Job id returned by dufs_upload or dufs_upload_batch."}
            },
            "required": ["job_id"]
        }
    },
    {
        "name": "dufs_download",
        "description": "Download a file from the dufs file server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "remote_path": {"type": "string", "description": "Remote file path."},
                "local_path": {"type": "string", "description": "Local destination path (optional)."}
            },
            "required": ["remote_path"]
        }
    },
    {
        "name": "dufs_delete",
        "description": "Delete a file or directory on the dufs file server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Path of the file or directory to delete."}
            },
            "required": ["path"]
        }
    },
    {
        "name": "dufs_list",
        "description": "List the contents of a directory on the dufs file server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Directory path (defaults to the root directory)."},
                "query": {"type": "string", "description": "Search query (optional)."},
                "format": {
                    "type": "string",
                    "enum": ["json", "simple"],
                    "description": "Output format: json or simple (optional)."
                }
            }
        }
    },
    {
        "name": "dufs_create_dir",
        "description": "Create a directory on the dufs file server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Directory path to create."}
            },
            "required": ["path"]
        }
    },
    {
        "name": "dufs_move",
        "description": "Move or rename a file or directory on the dufs file server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "source": {"type": "string", "description": "Source path."},
                "destination": {"type": "string", "description": "Destination path."}
            },
            "required": ["source", "destination"]
        }
    },
    {
        "name": "dufs_get_hash",
        "description": "Get the SHA256 hash of a file on the dufs file server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "File path."}
            },
            "required": ["path"]
        }
    },
    {
        "name": "dufs_download_folder",
        "description": "Download a whole folder from the dufs file server as a zip archive.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "remote_path": {"type": "string", "description": "Remote folder path."},
                "local_path": {"type": "string", "description": "Local destination path (optional, defaults to the current directory)."}
            },
            "required": ["remote_path"]
        }
    },
    {
        "name": "dufs_health",
        "description": "Check whether the dufs file server is healthy.",
        "inputSchema": {
            "type": "object",
            "properties": {}
        }
    },
]


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_wire(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": copy.deepcopy(self.input_schema),
        }


class ToolRegistry:
    """Read-only catalog of the tools answered by tools/list and tools/call."""

    def __init__(self, schemas: List[Dict[str, Any]]):
        descriptors: Dict[str, ToolDescriptor] = {}
        for schema_def in schemas:
            name = schema_def["name"]
            if name in descriptors:
                raise ValueError(f"duplicate tool name: {name}")
            descriptors[name] = ToolDescriptor(
                name=name,
                description=schema_def["description"],
                input_schema=schema_def["inputSchema"],
            )
        self._order: Tuple[str, ...] = tuple(descriptors)
        self._descriptors = MappingProxyType(descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._order)

    def names(self) -> Tuple[str, ...]:
        return self._order

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._descriptors.get(name)

    def list(self) -> List[Dict[str, Any]]:
        # Wire dicts are rebuilt per call so callers cannot edit the catalog.
        return [self._descriptors[name].to_wire() for name in self._order]


TOOL_REGISTRY = ToolRegistry(TOOLS_SCHEMAS)
