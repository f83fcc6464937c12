"""Shared constants for slicer."""

import re

# Feature and slice names are slugs
SLUG_PATTERN = re.compile(r'^[a-z][a-z0-9-]*$')
MAX_SLUG_LEN = 48

# Project-level config files
PROJECT_ENV_FILE = "slicer.env"
AGENTS_CONFIG_FILE = "agents.yaml"

# Feature directory layout
FEATURE_FILE = "feature.json"
REPORT_FILE = "report.json"
RUN_LOG_FILE = "run.log"
SLICES_DIR = "slices"
SLICE_FILE = "slice.json"
LOCKS_DIR = ".locks"

# Index artifacts, regenerated on every run
MASTER_PLAN_FILE = "master-plan.md"
SLICE_BREAKDOWN_FILE = "slice-breakdown.md"
IMPLEMENTATION_ORDER_FILE = "implementation-order.md"

# Exit codes
EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 2
