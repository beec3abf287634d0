import rerun as rr
import rerun.blueprint as rrb


# set rerun blueprint
def setup_rerun_blueprint():
    blueprint = rrb.Horizontal(
        rrb.Vertical(
            rrb.Spatial3DView(
                name="3D (Rig)",
                origin="world",
            ),
            rrb.TextDocumentView(
                name="Description",
                origin="/description"
                ),
            row_shares=[7, 3],
        ),
        rrb.Vertical(
            rrb.Spatial2DView(
                name="Left",
                origin="world/camera/left",
            ),
            rrb.Spatial2DView(
                name="Right",
                origin="world/camera/right",
            ),
            name="2D Views",
            row_shares=[1, 1],
        ),
        column_shares=[3, 1],
    )
    rr.send_blueprint(blueprint)
    rr.log("world", rr.ViewCoordinates.FLU, static=True)
    # F: Forward, L: Left, U: Up (ROS base_link 기준)


# log description to rerun
def log_description():
    description = """
    It visualizes synchronized stereo frames emitted by stereo_ingest.
    - **3D View**: reference frame and the left camera mounting transform
    - **Left**: normalized left image (grayscale or BGR when keep_color is set)
    - **Right**: normalized right image (always grayscale)
    """
    rr.log("description", rr.TextDocument(description, media_type=rr.MediaType.MARKDOWN), static=True)
