"""
whereisclass: parse registrar course listings and ask which rooms are busy.
"""
