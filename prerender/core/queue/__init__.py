"""
Job Queue
=========

Bounded FIFO queue of render jobs and the single-slot dispatcher.
"""
