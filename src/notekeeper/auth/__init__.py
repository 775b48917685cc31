"""Authentication and authorization.

Learn: Sessions are JWTs carried in a single HTTP-only cookie — never in
an Authorization header. The verified cookie resolves to a Caller, and
every note/user operation asks the policy engine (auth.policy) whether
that caller may act before any query runs.
"""
