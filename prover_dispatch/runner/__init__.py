# prover_dispatch.runner — dispatch and execution layer
#
# Modules:
#   invocation.py   — Per-prover invocation rules (argv + stdin wiring)
#   executor.py     — Subprocess engine: spawn, deadline, cancellation, capture
#   transport.py    — Transport interface and the HTTP remote transport
#   orchestrator.py — Public entry point: ProverClient.verify_proof
