"""
The CONTROLLER layer owns the timers and threads that drive the model and
forwards results to the view through Qt signals.
"""
