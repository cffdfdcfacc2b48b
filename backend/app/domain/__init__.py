"""Pure booking domain logic: state machine and session detail variants."""
