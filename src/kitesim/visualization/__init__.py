from .plotting import plot_flight_path, plot_line_tension, plot_wind_and_aoa
