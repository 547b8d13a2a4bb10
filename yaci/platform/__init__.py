"""pygame host: window/main loop, keyboard mapping and beeper."""
