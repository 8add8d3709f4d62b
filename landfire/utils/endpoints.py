# LFPS API paths, relative to the configured api root
HEALTHCHECK = "healthCheck"
PRODUCTS = "products"
JOB_SUBMIT = "job/submit"
JOB_STATUS = "job/status"
JOB_CANCEL = "job/cancel"

# Human-facing page listing the messages of a submitted job
JOB_MESSAGES_PAGE = "https://lfps.usgs.gov/job/{job_id}"
