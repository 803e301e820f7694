"""
Programs Module
===============

Bounty programs, vulnerability reports, the report lifecycle and the
program budget.

Bounded context: Programs
- Domain: Program and Report entities, ReportLifecycle, BudgetPolicy
- Application: ProgramService, ReportService
- Infrastructure: SQLAlchemy models and repositories
- Interfaces: /programs and /reports routes
"""
