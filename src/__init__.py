"""markflow: Markdown to platform-ready HTML for WeChat and Zhihu."""

__version__ = "0.1.0"
