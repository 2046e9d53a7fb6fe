"""Helpers for resolving where to load the Movement Range export from."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_MOVEMENT_FILE = Path("data/movement-range.txt")


@dataclass(frozen=True)
class HuggingFaceOptions:
    """Configuration for optionally pulling the export from the Hugging Face Hub."""

    repo_id: str | None
    revision: str | None
    token: str | None
    movement_file: str

    @property
    def enabled(self) -> bool:
        return bool(self.repo_id)


def _snapshot_hf_dataset(options: HuggingFaceOptions) -> Path:
    """Download a dataset snapshot and return its local path."""
    if not options.repo_id:
        raise ValueError("Cannot snapshot Hugging Face dataset without a repo_id.")

    try:
        from huggingface_hub import snapshot_download
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise SystemExit(
            "huggingface_hub is required for --hf-repo-id support. "
            "Install it via `pip install movement-analysis[hub]`."
        ) from exc

    return Path(
        snapshot_download(
            repo_id=options.repo_id,
            repo_type="dataset",
            revision=options.revision,
            token=options.token,
        )
    )


def resolve_data_path(
    *,
    movement_file: Path | None,
    hf_options: HuggingFaceOptions | None = None,
) -> Path:
    """Return the absolute path of the export to analyse.

    A local file takes precedence over a Hugging Face snapshot.
    """
    if movement_file is not None:
        local_path = movement_file.expanduser().resolve()
        if not local_path.is_file():
            raise SystemExit(f"Movement Range file not found: {local_path}")
        return local_path

    if hf_options is not None and hf_options.enabled:
        repo_path = _snapshot_hf_dataset(hf_options)
        remote_path = (repo_path / hf_options.movement_file).resolve()
        if not remote_path.is_file():
            raise SystemExit(
                f"File '{hf_options.movement_file}' not found in "
                f"Hugging Face dataset {hf_options.repo_id}."
            )
        return remote_path

    default_path = DEFAULT_MOVEMENT_FILE.expanduser().resolve()
    if not default_path.is_file():
        raise SystemExit(
            "No Movement Range file available. Provide --movement-file or "
            "--hf-repo-id with --hf-file."
        )
    return default_path
