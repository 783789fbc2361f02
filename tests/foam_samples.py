"""
Sample OpenFOAM files shared by the tests.

The mesh is two unit hexahedra side by side along x:

    points  p(i, j, k) = i + 3j + 6k  at (i, j, k), i in 0..2, j, k in 0..1
    face 0  internal between cell 0 and cell 1 (x = 1)
    face 1  inlet (x = 0), face 2 outlet (x = 2), faces 3-10 walls
"""

from typing import Dict


def header(class_name: str, object_name: str, location: str = None, extra: str = "") -> str:
    location_line = f'    location    "{location}";\n' if location else ""
    return (
        "/*--------------------------------*- C++ -*----------------------------------*\\\n"
        "  =========                 |\n"
        "  \\\\      /  F ield         | OpenFOAM: The Open Source CFD Toolbox\n"
        "\\*---------------------------------------------------------------------------*/\n"
        "FoamFile\n"
        "{\n"
        "    version     2.0;\n"
        "    format      ascii;\n"
        f"    class       {class_name};\n"
        f"{location_line}"
        f"{extra}"
        f"    object      {object_name};\n"
        "}\n"
        "// * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * * //\n\n"
    )


POINT_COORDINATES = [(i, j, k) for k in range(2) for j in range(2) for i in range(3)]

FACES = [
    (1, 4, 10, 7),
    (0, 6, 9, 3),
    (2, 5, 11, 8),
    (0, 1, 7, 6),
    (3, 9, 10, 4),
    (0, 3, 4, 1),
    (6, 7, 10, 9),
    (1, 2, 8, 7),
    (4, 10, 11, 5),
    (1, 4, 5, 2),
    (7, 8, 11, 10),
]

OWNER = [0, 0, 1, 0, 0, 0, 0, 1, 1, 1, 1]
NEIGHBOUR = [1]


def points_file() -> str:
    body = "\n".join(f"({x} {y} {z})" for x, y, z in POINT_COORDINATES)
    return header("vectorField", "points", "constant/polyMesh") + f"{len(POINT_COORDINATES)}\n(\n{body}\n)\n"


def faces_file() -> str:
    body = "\n".join(f"4({' '.join(str(p) for p in face)})" for face in FACES)
    return header("faceList", "faces", "constant/polyMesh") + f"{len(FACES)}\n(\n{body}\n)\n"


def faces_compact_file() -> str:
    offsets = " ".join(str(4 * i) for i in range(len(FACES) + 1))
    labels = " ".join(str(p) for face in FACES for p in face)
    return (header("faceCompactList", "faces", "constant/polyMesh")
            + f"{len(FACES) + 1}\n({offsets})\n\n{4 * len(FACES)}\n({labels})\n")


def owner_file(n_cells: int = 2) -> str:
    note = f'    note        "nPoints:12  nCells:{n_cells}  nFaces:11  nInternalFaces:1";\n'
    body = "\n".join(str(cell) for cell in OWNER)
    return header("labelList", "owner", "constant/polyMesh", note) + f"{len(OWNER)}\n(\n{body}\n)\n"


def neighbour_file() -> str:
    body = "\n".join(str(cell) for cell in NEIGHBOUR)
    return header("labelList", "neighbour", "constant/polyMesh") + f"{len(NEIGHBOUR)}\n(\n{body}\n)\n"


BOUNDARY_BODY = """3
(
    inlet
    {
        type            patch;
        nFaces          1;
        startFace       1;
    }
    outlet
    {
        type            patch;
        nFaces          1;
        startFace       2;
    }
    walls
    {
        type            wall;
        inGroups        List<word> 1(wall);
        nFaces          8;
        startFace       3;
    }
)
"""


def boundary_file(body: str = BOUNDARY_BODY) -> str:
    return header("polyBoundaryMesh", "boundary", "constant/polyMesh") + body


def mesh_files(prefix: str = "case/constant/polyMesh") -> Dict[str, str]:
    return {
        f"{prefix}/points": points_file(),
        f"{prefix}/faces": faces_file(),
        f"{prefix}/owner": owner_file(),
        f"{prefix}/neighbour": neighbour_file(),
        f"{prefix}/boundary": boundary_file(),
    }


P_BOUNDARY = """boundaryField
{
    inlet
    {
        type            fixedValue;
        value           $internalField;
    }
    outlet
    {
        type            fixedValue;
        value           uniform 0;
    }
    walls
    {
        type            zeroGradient;
    }
}
"""


def p_field(location: str = "0", internal: str = "uniform 3", boundary: str = P_BOUNDARY) -> str:
    return (header("volScalarField", "p", location)
            + "dimensions      [0 2 -2 0 0 0 0];\n\n"
            + f"internalField   {internal};\n\n"
            + boundary)


def u_field(location: str = "0") -> str:
    return (header("volVectorField", "U", location)
            + "dimensions      [0 1 -1 0 0 0 0];\n\n"
            + "internalField   nonuniform List<vector> 2((1 0 0) (2 0.5 -1e-3));\n\n"
            + "boundaryField\n"
            + "{\n"
            + "    inlet\n"
            + "    {\n"
            + "        type            fixedValue;\n"
            + "        value           uniform (1 0 0);\n"
            + "    }\n"
            + "    outlet\n"
            + "    {\n"
            + "        type            inletOutlet;\n"
            + "        inletValue      uniform (0 0 0);\n"
            + "        value           uniform (0 0 0);\n"
            + "    }\n"
            + "    wall\n"
            + "    {\n"
            + "        type            noSlip;\n"
            + "    }\n"
            + "}\n")


def case_files(times=("0", "0.1", "1", "10")) -> Dict[str, str]:
    """A complete case with p and U at every time."""
    files = mesh_files()
    for time in times:
        files[f"case/{time}/p"] = p_field(time)
        files[f"case/{time}/U"] = u_field(time)
    files["case/system/controlDict"] = header("dictionary", "controlDict", "system") + "application simpleFoam;\n"
    return files
