"""
Analytics collection reference.

Analytics records are written by the page-view tracker, outside this
package; the portfolio listing only joins and counts them by portfolio_id.
"""

ANALYTICS_COLLECTION = "analytics"
