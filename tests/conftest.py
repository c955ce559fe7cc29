import os
import tempfile

# Keep test runs from writing logs / outputs into the working tree.
_TMP = tempfile.mkdtemp(prefix="snaplog-tests-")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP, "logs"))
os.environ.setdefault("SNAPLOG_EXPRESSIONS_DIR", os.path.join(_TMP, "expressions"))
os.environ.setdefault("SNAPLOG_CONVERSIONS_DIR", os.path.join(_TMP, "conversions"))
os.environ.pop("SNAPLOG_PATTERN_FILE", None)
