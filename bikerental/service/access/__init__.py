"""
The access package reads and writes the models. Each module covers one model
and exposes plain coroutines, the collaborator classes wrap them for the
rental manager.
"""
