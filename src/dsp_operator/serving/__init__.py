"""
Serving — FastAPI application for operator probes and dry-run resolution.

The reconcile loop calls :class:`~dsp_operator.params.ParameterResolver`
in-process; this app only exposes health/readiness and a read-only view of
what a pass would resolve.
"""
