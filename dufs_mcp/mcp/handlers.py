import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from dufs_mcp.sdk.client import DufsClient

from .arguments import (
    DownloadArgs,
    ListArgs,
    MoveArgs,
    NoArgs,
    PathArgs,
    ToolArguments,
    UploadArgs,
    UploadBatchArgs,
    UploadStatusArgs,
    parse_arguments,
)
from .errors import ApplicationError, UnknownToolError
from .jobs import JobNotFoundError, JobStore, UploadTask
from .runner import JobRunner
from .uploads import Uploader, UploadError

logger = logging.getLogger("DufsMcp.mcp.handlers")

ToolFn = Callable[[Any], Dict[str, Any]]


def default_local_path(remote_path: str) -> str:
    """Flatten a remote path into a file name for the working directory."""
    flattened = remote_path.lstrip("/")
    if flattened.startswith("./"):
        flattened = flattened[2:]
    return flattened.replace("/", "_")


class ToolHandlers:
    """Implementations of every registered tool, keyed by tool name."""

    def __init__(
        self,
        client: DufsClient,
        uploader: Uploader,
        store: JobStore,
        runner: JobRunner,
    ):
        self.client = client
        self.uploader = uploader
        self.store = store
        self.runner = runner
        self._dispatch: Dict[str, Tuple[Type[ToolArguments], ToolFn]] = {
            "dufs_upload": (UploadArgs, self.upload),
            "dufs_upload_batch": (UploadBatchArgs, self.upload_batch),
            "dufs_upload_status": (UploadStatusArgs, self.upload_status),
            "dufs_download": (DownloadArgs, self.download),
            "dufs_delete": (PathArgs, self.delete),
            "dufs_list": (ListArgs, self.list),
            "dufs_create_dir": (PathArgs, self.create_dir),
            "dufs_move": (MoveArgs, self.move),
            "dufs_get_hash": (PathArgs, self.get_hash),
            "dufs_download_folder": (DownloadArgs, self.download_folder),
            "dufs_health": (NoArgs, self.health),
        }

    def names(self) -> Tuple[str, ...]:
        return tuple(self._dispatch)

    def call(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        entry = self._dispatch.get(name)
        if entry is None:
            raise UnknownToolError(name)
        model, handler = entry
        return handler(parse_arguments(model, arguments))

    # -- uploads --------------------------------------------------------

    def _start_job(self, tasks: List[UploadTask]) -> Dict[str, Any]:
        job_id = self.store.create(tasks)
        self.runner.submit(job_id)
        return {
            "success": True,
            "job_id": job_id,
            "status": "pending",
            "task_count": len(tasks),
        }

    def upload(self, args: UploadArgs) -> Dict[str, Any]:
        if args.run_async:
            return self._start_job(
                [UploadTask(local_path=args.local_path, requested_remote_path=args.remote_path)]
            )
        try:
            outcome = self.uploader.upload(args.local_path, args.remote_path)
        except UploadError as exc:
            raise ApplicationError(exc.message) from exc
        return {
            "success": True,
            "message": f"File uploaded successfully to {outcome.remote_path}",
            "remote_path": outcome.remote_path,
            "status": outcome.status_code,
        }

    def upload_batch(self, args: UploadBatchArgs) -> Dict[str, Any]:
        tasks = [
            UploadTask(local_path=entry.local_path, requested_remote_path=entry.remote_path)
            for entry in args.files
        ]
        if args.run_async:
            return self._start_job(tasks)

        # Synchronous batches try every file and report each one.
        results = []
        for task in tasks:
            try:
                outcome = self.uploader.upload(task.local_path, task.requested_remote_path)
            except UploadError as exc:
                logger.warning("Batch upload of %s failed: %s", task.local_path, exc.message)
                results.append({
                    "local_path": task.local_path,
                    "remote_path": task.requested_remote_path or "",
                    "success": False,
                    "error": exc.message,
                    "status": exc.status_code or 0,
                })
                continue
            results.append({
                "local_path": task.local_path,
                "remote_path": outcome.remote_path,
                "success": True,
                "status": outcome.status_code,
            })
        return {
            "success": all(result["success"] for result in results),
            "results": results,
            "count": len(results),
        }

    def upload_status(self, args: UploadStatusArgs) -> Dict[str, Any]:
        try:
            job = self.store.get(args.job_id)
        except JobNotFoundError as exc:
            raise ApplicationError(str(exc)) from exc
        return {"success": True, "job": job.to_public()}

    # -- transfers ------------------------------------------------------

    def _download(self, remote_path: str, local_path: str, *, archive: bool) -> Tuple[int, int]:
        try:
            return self.client.download_to(remote_path, local_path, archive=archive)
        except OSError as exc:
            raise ApplicationError(f"failed to create local file: {exc}") from exc

    def download(self, args: DownloadArgs) -> Dict[str, Any]:
        local_path = args.local_path or default_local_path(args.remote_path)
        written, status = self._download(args.remote_path, local_path, archive=False)
        return {
            "success": True,
            "message": f"File downloaded successfully to {local_path}",
            "local_path": local_path,
            "size_bytes": written,
            "status": status,
        }

    def download_folder(self, args: DownloadArgs) -> Dict[str, Any]:
        local_path = args.local_path or f"{default_local_path(args.remote_path)}.zip"
        written, status = self._download(args.remote_path, local_path, archive=True)
        return {
            "success": True,
            "message": f"Folder downloaded successfully to {local_path}",
            "local_path": local_path,
            "size_bytes": written,
            "status": status,
        }

    # -- file management ------------------------------------------------

    def delete(self, args: PathArgs) -> Dict[str, Any]:
        status = self.client.delete(args.path)
        return {
            "success": True,
            "message": f"Deleted {args.path} successfully",
            "status": status,
        }

    def list(self, args: ListArgs) -> Dict[str, Any]:
        data, status = self.client.list(args.path or "/", search=args.query, fmt=args.format)
        return {"success": True, "data": data, "status": status}

    def create_dir(self, args: PathArgs) -> Dict[str, Any]:
        result = self.client.make_directory(args.path)
        if result.already_exists:
            message = f"Directory {args.path} already exists"
        else:
            message = f"Directory {args.path} created successfully"
        return {"success": True, "message": message, "status": result.status_code}

    def move(self, args: MoveArgs) -> Dict[str, Any]:
        status = self.client.move(args.source, args.destination)
        return {
            "success": True,
            "message": f"Moved {args.source} to {args.destination} successfully",
            "status": status,
        }

    def get_hash(self, args: PathArgs) -> Dict[str, Any]:
        return {"success": True, "hash": self.client.get_hash(args.path), "path": args.path}

    def health(self, args: NoArgs) -> Dict[str, Any]:
        response = self.client.health()
        healthy = response.status_code == 200
        return {"success": healthy, "status": response.status_code, "healthy": healthy}

