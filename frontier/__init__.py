from frontier.models import BaseDomain, Candidate, ProbeResult
from frontier.generator import generate_candidates, expand_all, shuffle_candidates
