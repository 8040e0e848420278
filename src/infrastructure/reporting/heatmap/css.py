"""Stylesheet for the HTML heat-map snapshot (dark theme)."""

HEATMAP_CSS = """
body.heatboard {
    margin: 0;
    padding: 24px;
    background: #0b0b0d;
    color: #e5e7eb;
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
}

.hm-header h1 { margin: 0 0 4px 0; font-size: 22px; }
.hm-header .meta { color: #9ca3af; font-size: 13px; }

h2 { font-size: 16px; margin: 24px 0 8px 0; color: #d1d5db; }

.hm-index-strip { display: flex; gap: 24px; margin: 16px 0; }
.hm-index { display: flex; gap: 8px; font-size: 14px; }
.hm-index-name { color: #9ca3af; }

.positive { color: #22c55e; }
.negative { color: #ef4444; }

.hm-stats { display: flex; gap: 20px; margin: 12px 0; font-size: 13px; }
.hm-stat-value { margin-left: 4px; font-weight: 600; }

.hm-legend { display: flex; gap: 6px; margin: 8px 0 16px 0; }
.hm-legend-item { display: flex; flex-direction: column; align-items: center; font-size: 11px; }
.hm-legend-color { width: 48px; height: 14px; border-radius: 2px; margin-bottom: 2px; }

.hm-grid {
    display: grid;
    grid-template-columns: repeat(auto-fill, minmax(88px, 1fr));
    gap: 2px;
}

.hm-tile {
    display: flex;
    flex-direction: column;
    align-items: center;
    justify-content: center;
    height: 56px;
    border-radius: 3px;
    cursor: default;
}
.hm-tile-symbol { font-weight: 700; font-size: 13px; }
.hm-tile-label { font-size: 11px; }

.hm-sectors { display: flex; flex-direction: column; gap: 6px; }
.hm-sector summary {
    display: flex;
    gap: 16px;
    align-items: baseline;
    padding: 10px 12px;
    border-radius: 4px;
    cursor: pointer;
    list-style: none;
}
.hm-sector summary::-webkit-details-marker { display: none; }
.hm-sector-name { font-weight: 700; min-width: 220px; }
.hm-sector-cap { margin-left: auto; font-size: 12px; opacity: 0.8; }
.hm-sector[open] .hm-grid { margin-top: 4px; }
"""
