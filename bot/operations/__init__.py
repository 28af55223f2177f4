"""
Operations Layer

This package provides data access operations for the two stores the
leaderboard core depends on. Each method can join a caller's transaction by
accepting its session, which is how a claim updates points and appends
history atomically.

Architecture:
- Database layer: engine, sessions and transaction boundaries
- Operations layer: Participant and history persistence
- Services layer: ranking, claims, live fan-out
- Command layer: Discord integration and user interface

Modules:
- ParticipantStore: participant lookups, registration, points and rank writes
- HistoryLog: append-only claim history with bounded reads
"""
