"""Centralized layout constants for Prow job artifact listings."""

# Object names relative to a job's listing directory
STARTED_JSON = "started.json"
FINISHED_JSON = "finished.json"

# Directory selection rules, one per listing level
ARTIFACTS_SUFFIX = "artifacts/"
E2E_MARKER = "e2e"
GATHER_EXTRA_SEGMENT = "gather-extra"

# Archive path relative to the selected e2e (or gather-extra) directory
PROM_TAR_PATH = "metrics/prometheus.tar"

# Path segment under which gcsweb mirrors bucket contents
LISTING_BUCKET_PATH = "/gcs"

# Timeouts
DEFAULT_FETCH_TIMEOUT = 10  # seconds, per request

# Run labels
APP_LABEL_CHARSET = "abcdefghijklmnopqrstuvwxyz"
APP_LABEL_LENGTH = 8

# Host prefixes used by OpenShift CI; written into config by `prowmetrics init`
OPENSHIFT_CI_PREFIXES = {
    "viewer_prefix": "https://prow.svc.ci.openshift.org/view",
    "listing_prefix": "https://gcsweb-ci.svc.ci.openshift.org",
    "storage_prefix": "https://storage.googleapis.com",
}
