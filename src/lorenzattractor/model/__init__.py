"""
The MODEL layer contains pure data structures and numerical logic.
It has NO knowledge of the GUI (Qt) or the Visualization (PyVista).
It deals with integration, buffering and camera math.
"""
