"""
Agenda core for the workforce task pool.

Packages:
- agenda.intervals: the Interval/Occurrence model
- agenda.availability: resolver, conflicts, layout, drag session, heatmap
- agenda.store: persistence collaborator (REST backend)
- agenda.assignments: booking workers onto tasks
"""

__version__ = "0.3.0"
