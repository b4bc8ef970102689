"""Real-time plotting for the hover simulator using Viser and Plotly."""

import plotly.graph_objects as go


class PlotManager:
    """
    Manages real-time plots for the hover simulator.

    Uses Plotly to generate interactive plots displayed in Viser.
    """

    # (title, y label, [(series, name, color, dashed)])
    PLOTS = [
        ("Altitude", "m", [
            ("altitude", "Altitude", "#4ecdc4", False),
            ("target", "Target", "#4ecdc4", True),
        ]),
        ("Vertical Velocity", "m/s", [
            ("velocity", "Vy", "#ffe66d", False),
        ]),
        ("Thrust", "N", [
            ("thrust", "Thrust", "#ff6b6b", False),
            ("hover_thrust", "Hover", "#ff6b6b", True),
        ]),
        ("Orientation", "Degrees", [
            ("pitch", "Pitch", "#4ecdc4", False),
            ("roll", "Roll", "#ff6b6b", False),
            ("yaw", "Yaw", "#ffe66d", False),
        ]),
    ]

    def __init__(self, server, plot_data):
        """
        Initialize the plot manager.

        Args:
            server: Viser server instance
            plot_data: PlotData instance with time series data
        """
        self.server = server
        self.plot_data = plot_data
        self.figures = []
        self.plot_handles = []

        self._setup_plots()

    def _create_empty_figure(self, title: str, y_label: str = "") -> go.Figure:
        """Create an empty Plotly figure with dark theme."""
        fig = go.Figure()
        fig.update_layout(
            title=dict(text=title, font=dict(size=12, color="#ccc")),
            paper_bgcolor="#1a1a2e",
            plot_bgcolor="#16213e",
            font=dict(color="#ccc", size=10),
            xaxis=dict(
                title="Time [s]",
                gridcolor="#2a2a4e",
                zerolinecolor="#3a3a5e",
            ),
            yaxis=dict(
                title=y_label,
                gridcolor="#2a2a4e",
                zerolinecolor="#3a3a5e",
            ),
            legend=dict(
                orientation="h",
                yanchor="bottom",
                y=1.02,
                xanchor="right",
                x=1,
                font=dict(size=9),
            ),
            margin=dict(l=50, r=20, t=40, b=40),
            height=180,
        )
        return fig

    def _setup_plots(self):
        """Setup the plot display in Viser GUI."""
        with self.server.gui.add_folder("Plots"):
            for title, y_label, _ in self.PLOTS:
                fig = self._create_empty_figure(title, y_label)
                self.figures.append(fig)
                self.plot_handles.append(self.server.gui.add_plotly(fig))

    def update(self):
        """Update all plots with current data."""
        if len(self.plot_data.time) < 2:
            return

        time_array = list(self.plot_data.time)

        for fig, handle, (_, _, traces) in zip(self.figures, self.plot_handles, self.PLOTS):
            fig.data = []
            for series, name, color, dashed in traces:
                line = dict(color=color, width=1 if dashed else 2)
                if dashed:
                    line["dash"] = "dash"
                fig.add_trace(go.Scatter(
                    x=time_array, y=list(getattr(self.plot_data, series)),
                    name=name, mode="lines", line=line,
                ))
            handle.figure = fig
