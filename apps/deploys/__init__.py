"""
Deployment Orchestration app.

A Slack mention naming an app and a PR (or main) becomes one run of a strict,
linear pipeline:

    resolve → artifact → checks → manifest → commit → sync (+ status polling)

Key concepts:
- Fail fast, one narration per stage, one terminal narration per run
- Per-run PollTally; nothing mutable is shared between runs
- One StatusReconciler shared by the chat path and the GitHub relay path
"""
