from svgplot.render.svg import SvgDocument, emit_svg, svg_color

__all__ = ["SvgDocument", "emit_svg", "svg_color"]
