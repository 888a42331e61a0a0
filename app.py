"""
Parking Map Viewer - Streamlit GUI Application

This module provides the Streamlit entry point that hosts the parking map
page. Run with:

    streamlit run app.py
"""

import logging

import streamlit as st

from components.parking_map import render_parking_map_page

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="Parking Map Viewer",
    page_icon="🅿️",
    layout="wide",
    initial_sidebar_state="expanded"
)


def main():
    """Main Streamlit application entry point"""
    render_parking_map_page()


if __name__ == "__main__":
    main()
