"""Application metrics using the Prometheus client library.

All metrics are defined here, one inventory of everything the service
measures.  Other modules import a specific metric and increment or
observe it at the point of action.

HTTP metrics are filled in by MetricsMiddleware for every request.
Domain counters answer the questions teachers and operators actually
ask: how many quiz attempts pass, how often the attempt policy turns a
student away (and for which rule), how many submissions arrive late,
how many courses get completed.

Label values are small fixed sets (never student or course ids) so the
number of time series stays bounded.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progress and grading metrics
# ---------------------------------------------------------------------------

LESSON_COMPLETIONS = Counter(
    "lesson_completions_total",
    "Lesson completion events by outcome",
    ["outcome"],  # "recorded" or "duplicate"
)

COURSE_COMPLETIONS = Counter(
    "course_completions_total",
    "Enrollments that reached 100% progress",
)

QUIZ_ATTEMPTS = Counter(
    "quiz_attempts_total",
    "Graded quiz attempts by result",
    ["result"],  # "passed" or "failed"
)

POLICY_REJECTIONS = Counter(
    "policy_rejections_total",
    "Requests refused by a business rule",
    ["rule"],  # max_attempts|cooldown|late_window|unenroll_limit|...
)

ASSIGNMENT_SUBMISSIONS = Counter(
    "assignment_submissions_total",
    "Accepted assignment submissions by timeliness",
    ["timeliness"],  # "on_time" or "late"
)

ASSIGNMENT_GRADES = Counter(
    "assignment_grades_total",
    "Assignment grading decisions recorded",
)

COLLABORATOR_COMMANDS = Counter(
    "collaborator_commands_total",
    "Commands queued for external collaborators",
    ["queue_name"],  # "profile_points" or "certificate_issuance"
)
