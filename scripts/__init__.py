from pathlib import Path
import shutil
import subprocess
import sys

from flex2treetop.host import GENERATED_GRAMMAR_DIR

UNIT_TEST_DIR = "flex2treetop/tests"
INTEGRATION_TEST_DIR = "tests"


def _pytest(label: str, *paths: str) -> None:
    print(f"Running {label}...")
    result = subprocess.run([sys.executable, "-m", "pytest", *paths], check=False)
    sys.exit(result.returncode)

def run_unit_tests():
    """Run the per-component unit tests."""
    _pytest("unit tests", UNIT_TEST_DIR)

def run_integration_tests():
    """Run the grammar file integration tests."""
    _pytest("integration tests", INTEGRATION_TEST_DIR)

def run_all_tests():
    """Run unit and integration tests in one session."""
    _pytest("all tests", UNIT_TEST_DIR, INTEGRATION_TEST_DIR)

def clean_targets(root: Path) -> list[Path]:
    """
    Existing build and test leftovers under `root`: the virtualenv, pytest's
    cache, every __pycache__ directory and the examples' generated grammars.
    """
    fixed = [root / "venv", root / ".pytest_cache", root / GENERATED_GRAMMAR_DIR]
    caches = [
        path for path in sorted(root.rglob("__pycache__"))
        if not any(parent in fixed for parent in path.parents)
    ]
    return [path for path in fixed + caches if path.is_dir()]

def clean_project(root: str | Path = "."):
    """Remove the directories listed by `clean_targets`."""
    print("Cleaning up project...")
    for folder in clean_targets(Path(root)):
        try:
            shutil.rmtree(folder)
            print(f"Removed: {folder}")
        except OSError as e:
            print(f"Failed to remove {folder}: {e}")

    print("Cleanup complete.")
