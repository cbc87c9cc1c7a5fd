"""Service layer: workflow use-cases built on core and platform.

`workflow/`, leaves first:
- model / errors / semver: domain types
- ledger / notes: persisted release history and its markdown rendering
- generator / vcs: adapters for the external generator CLI and git + gh
- branch / aggregate / finalize: the individual workflow steps
- orchestrator: sequencing and branch cleanup
"""
