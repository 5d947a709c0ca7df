import os
import subprocess

from pathlib import Path
from typing import Dict, List, Optional


def git_test_environment() -> Dict[str, str]:
    return {
        "GIT_AUTHOR_NAME": "Build Bot",
        "GIT_AUTHOR_EMAIL": "build-bot@example.org",
        "GIT_COMMITTER_NAME": "Build Bot",
        "GIT_COMMITTER_EMAIL": "build-bot@example.org",
        # local submodule clones are refused by default since git 2.38.1
        "GIT_CONFIG_COUNT": "1",
        "GIT_CONFIG_KEY_0": "protocol.file.allow",
        "GIT_CONFIG_VALUE_0": "always",
    }


class FakeRunner:
    """Records git invocations and replays canned (status, stdout) results."""

    def __init__(self, outputs: Optional[Dict[tuple, tuple]] = None):
        self.outputs = outputs or {}
        self.calls: List[List[str]] = []
        self.envs: List[dict] = []

    def launch(self, args, cwd, env=None, stdout=None, stderr=None) -> int:
        call = list(args[1:])
        self.calls.append(call)
        self.envs.append(dict(env or {}))
        status, output = self.outputs.get(tuple(call), (0, ""))
        if stdout is not None:
            stdout.write(output)
        if stderr is not None and status != 0:
            stderr.write(f"fatal: {call[0]} failed\n")
        return status


class GitRepoFactory:
    """Helper class to build git repositories for testing."""

    def __init__(self, base_dir: Path, env: Dict[str, str]):
        self.base_dir = base_dir
        self.env = env

    def git(self, cwd: Path, *args: str) -> str:
        full_env = dict(os.environ)
        full_env.update(self.env)
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=full_env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def create(self, name: str, files: Optional[Dict[str, str]] = None) -> Path:
        """Create a non-bare repository with one commit holding `files`."""
        path = self.base_dir / name
        path.mkdir(parents=True)
        self.git(path, "init", "-q")
        self.commit(path, files or {"README.md": f"# {name}\n"}, "Initial commit")
        return path

    def commit(self, path: Path, files: Dict[str, str], message: str) -> str:
        for rel_path, content in files.items():
            target = path / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        self.git(path, "add", "-A")
        self.git(path, "commit", "-q", "-m", message)
        return self.git(path, "rev-parse", "HEAD")

    def bare_clone(self, source: Path, name: str) -> Path:
        path = self.base_dir / name
        self.git(self.base_dir, "clone", "-q", "--bare", str(source), str(path))
        return path

    def add_submodule(self, superproject: Path, source: Path, sub_path: str) -> None:
        self.git(superproject, "submodule", "add", "-q", str(source), sub_path)
        self.git(superproject, "commit", "-q", "-m", f"Add submodule {sub_path}")
