from prometheus_client import Counter

VISIT_SUBMISSIONS = Counter(
    "sw_visit_submissions_total",
    "Visit submissions by outcome (accepted, flagged or rejection reason)",
    ["outcome"],
)

VISIT_ALERTS = Counter(
    "sw_visit_alerts_total",
    "Flagged-visit alerts by delivery result",
    ["result"],
)

CLAIMS_UPSERTED = Counter(
    "sw_claims_upserted_total",
    "Visits folded into a daily claim draft",
)

CLAIM_TRANSITIONS = Counter(
    "sw_claim_transitions_total",
    "Claim status transitions",
    ["to_status"],
)
