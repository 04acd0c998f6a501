# vve_governance/constants.py

# --- Majority policies ---
POLICY_SIMPLE = 'SIMPLE'
POLICY_QUALIFIED_TWO_THIRDS = 'QUALIFIED_TWO_THIRDS'
POLICY_UNANIMOUS = 'UNANIMOUS'
VALID_POLICIES = (POLICY_SIMPLE, POLICY_QUALIFIED_TWO_THIRDS, POLICY_UNANIMOUS)

# Older portal records still carry the older proposal type names.
POLICY_ALIASES = {
    'NORMAL': POLICY_SIMPLE,
    'SPECIAL': POLICY_QUALIFIED_TWO_THIRDS,
}

POLICY_LABELS = {
    POLICY_SIMPLE: 'Meerderheid (> 50%)',
    POLICY_QUALIFIED_TWO_THIRDS: 'Gekwalificeerd (2/3)',
    POLICY_UNANIMOUS: 'Unaniem (100%)',
}

# --- Proposal lifecycle ---
STATUS_DRAFT = 'DRAFT'
STATUS_OPEN = 'OPEN'
STATUS_ACCEPTED = 'ACCEPTED'
STATUS_REJECTED = 'REJECTED'
STATUS_EXPIRED = 'EXPIRED'
PROPOSAL_STATUSES = (STATUS_DRAFT, STATUS_OPEN, STATUS_ACCEPTED, STATUS_REJECTED, STATUS_EXPIRED)
TERMINAL_STATUSES = frozenset({STATUS_ACCEPTED, STATUS_REJECTED, STATUS_EXPIRED})

# --- Ballot choices ---
CHOICE_FOR = 'FOR'
CHOICE_AGAINST = 'AGAINST'
CHOICE_ABSTAIN = 'ABSTAIN'
VALID_CHOICES = (CHOICE_FOR, CHOICE_AGAINST, CHOICE_ABSTAIN)

# --- Decision verdicts (display only) ---
VERDICT_PASSED = 'PASSED'
VERDICT_IMPOSSIBLE = 'IMPOSSIBLE'
VERDICT_PENDING = 'PENDING'

# --- Person roles ---
ROLE_MEMBER = 'MEMBER'
ROLE_BOARD = 'BOARD'
ROLE_MANAGER = 'MANAGER'
ROLE_ADMIN = 'ADMIN'
PERSON_ROLES = (ROLE_MEMBER, ROLE_BOARD, ROLE_MANAGER, ROLE_ADMIN)
MANAGER_ROLES = frozenset({ROLE_BOARD, ROLE_MANAGER, ROLE_ADMIN})

# --- Meetings ---
MEETING_PLANNED = 'PLANNED'
MEETING_HELD = 'HELD'
MEETING_CANCELLED = 'CANCELLED'
MEETING_STATUSES = (MEETING_PLANNED, MEETING_HELD, MEETING_CANCELLED)

# --- Audit trail ---
AUDIT_PROPOSAL_CREATED = 'PROPOSAL_CREATED'
AUDIT_PROPOSAL_STATUS_CHANGED = 'PROPOSAL_STATUS_CHANGED'
AUDIT_PROPOSAL_DELETED = 'PROPOSAL_DELETED'
AUDIT_UNIT_TRANSFERRED = 'UNIT_TRANSFERRED'
AUDITED_ACTIONS = (
    AUDIT_PROPOSAL_CREATED,
    AUDIT_PROPOSAL_STATUS_CHANGED,
    AUDIT_PROPOSAL_DELETED,
    AUDIT_UNIT_TRANSFERRED,
)

# A unit without a recorded fraction votes with this weight.
DEFAULT_UNIT_WEIGHT = 1
